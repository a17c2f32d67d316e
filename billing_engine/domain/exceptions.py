"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class UnsupportedBillingCycleError(DomainException):
    """A billing cycle value outside the known set reached the engine"""

    pass


class ExchangeRateUnavailableError(DomainException):
    """No exchange rate is known for the requested currency pair"""

    pass


class ExchangeRateAPIError(DomainException):
    """Exchange rate source returned an error or is unavailable"""

    pass
