"""
ETF Tracker Analytics API
Thin HTTP layer over the portfolio analytics engine.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from etf_tracker.analysis.engine import PortfolioAnalyticsEngine
from etf_tracker.errors import InvalidInputError
from etf_tracker.utils.logger import setup_logger

logger = setup_logger("api")

app = FastAPI(title="ETF Tracker Analytics API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_engine() -> PortfolioAnalyticsEngine:
    return PortfolioAnalyticsEngine()


def ok(data) -> dict:
    return {"success": True, "data": data}


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error", "message": str(exc)},
    )


# ---------------------------------------------------------------------------
# Portfolios
# ---------------------------------------------------------------------------

@app.get("/api/health")
def health():
    return {"status": "ok"}


@app.get("/api/portfolios")
def list_portfolios(engine: PortfolioAnalyticsEngine = Depends(get_engine)):
    return ok(engine.store.list_portfolios())


@app.get("/api/investments/history/{portfolio_id}/{ticker}")
def purchase_history(portfolio_id: str, ticker: str,
                     engine: PortfolioAnalyticsEngine = Depends(get_engine)):
    return ok(engine.purchase_history(portfolio_id, ticker))


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

@app.get("/api/analytics/historical/{portfolio_id}")
def historical(portfolio_id: str, days: Optional[str] = None,
               engine: PortfolioAnalyticsEngine = Depends(get_engine)):
    return ok(engine.historical(portfolio_id, days))


@app.get("/api/analytics/metrics/{portfolio_id}")
def metrics(portfolio_id: str, engine: PortfolioAnalyticsEngine = Depends(get_engine)):
    return ok(engine.valuation(portfolio_id))


@app.get("/api/analytics/correlation/{portfolio_id}")
def correlation(portfolio_id: str, days: Optional[str] = None,
                engine: PortfolioAnalyticsEngine = Depends(get_engine)):
    return ok(engine.correlation(portfolio_id, days))


@app.get("/api/analytics/volatility/{portfolio_id}")
def volatility(portfolio_id: str, days: Optional[str] = None,
               engine: PortfolioAnalyticsEngine = Depends(get_engine)):
    return ok(engine.volatility(portfolio_id, days))


@app.get("/api/analytics/risk/{portfolio_id}")
def risk(portfolio_id: str, days: Optional[str] = None, riskFreeRate: Optional[str] = None,
         engine: PortfolioAnalyticsEngine = Depends(get_engine)):
    return ok(engine.risk_metrics(portfolio_id, days, riskFreeRate))


class RebalanceRequest(BaseModel):
    targetAllocations: Optional[dict] = None


@app.post("/api/analytics/rebalance/{portfolio_id}")
def rebalance(portfolio_id: str, body: Optional[RebalanceRequest] = None,
              engine: PortfolioAnalyticsEngine = Depends(get_engine)):
    targets = body.targetAllocations if body is not None else None
    return ok(engine.rebalance(portfolio_id, targets))
