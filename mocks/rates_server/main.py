from fastapi import FastAPI
from datetime import date

from billing_engine.domain.currency import STATIC_RATES_FROM_USD

app = FastAPI(title="Mock Exchange Rate Server", version="1.0.0")


@app.get("/health")
def health(): return {"status": "ok"}


@app.get("/v1/currencies/usd.json")
def usd_rates():
    rates = {code.lower(): rate for code, rate in STATIC_RATES_FROM_USD.items() if code != "USD"}
    return {"date": date.today().isoformat(), "usd": rates}
