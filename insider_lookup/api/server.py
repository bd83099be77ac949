from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from insider_lookup.config import Config, load_config
from insider_lookup.errors import SecRequestError
from insider_lookup.service import InsiderLookupService
from insider_lookup.util.validation import is_valid_ticker, normalize_ticker

INVALID_TICKER_DETAIL = "Invalid ticker. Please use 1-5 uppercase letters with optional .suffix."
UPSTREAM_DETAIL = "Unable to retrieve insider transactions from the SEC."


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


class RefreshRequest(BaseModel):
    ticker: str


def _validated_ticker(raw: Optional[str]) -> str:
    ticker = normalize_ticker(raw)
    if not is_valid_ticker(ticker):
        raise HTTPException(status_code=400, detail=INVALID_TICKER_DETAIL)
    return ticker


def _lookup_or_raise(service: InsiderLookupService, ticker: str) -> Dict[str, Any]:
    try:
        result = service.lookup(ticker)
    except SecRequestError as e:
        _debug(f"Upstream failure ticker={ticker}: {e}")
        raise HTTPException(status_code=502, detail=UPSTREAM_DETAIL)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Ticker {ticker} not found in SEC data.")
    return result.to_dict()


def create_app(cfg: Config | None = None, service: InsiderLookupService | None = None) -> FastAPI:
    cfg = cfg or load_config()
    svc = service or InsiderLookupService.from_config(cfg)

    app = FastAPI(title="Insider Lookup", version="0.1.0")
    app.state.cfg = cfg
    app.state.service = svc

    # CORS is mainly needed for local development (Vite on :5173 -> API on :8000).
    cors_origins = [o.strip() for o in (cfg.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok"}

    @app.get("/api/insiders")
    def insiders(ticker: str = Query("")) -> Dict[str, Any]:
        """GET /api/insiders?ticker=AAPL"""
        return _lookup_or_raise(svc, _validated_ticker(ticker))

    @app.post("/api/insiders/refresh")
    def refresh_insiders(body: RefreshRequest) -> Dict[str, Any]:
        """Drop cached results for a ticker (both tiers) and look it up again."""
        ticker = _validated_ticker(body.ticker)
        svc.invalidate(ticker)
        return _lookup_or_raise(svc, ticker)

    return app


# uvicorn entry point (scripts/run_api.py). Building the app does no network I/O.
app = create_app()
