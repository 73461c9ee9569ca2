"""
FastAPI backend — REST API for the trade journal.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel
from typing import Union
import logging
import math

from config.settings import settings
from tradejournal.core.editor import trade_to_form
from tradejournal.core.export import EXPORT_FILENAME, trades_to_csv
from tradejournal.core.session import JournalError, JournalSession, TradeNotFound
from tradejournal.database import SQLiteTradeStore
from tradejournal.models.trade import TradeFilter, TradeForm, TradeSubmission
from tradejournal.services.preferences import LocalPreferences

logger = logging.getLogger("tradejournal")


def sanitize_for_json(obj):
    """Recursively replace NaN/Inf with None so the payload stays valid JSON."""
    if isinstance(obj, dict):
        return {k: sanitize_for_json(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [sanitize_for_json(v) for v in obj]
    elif isinstance(obj, float) and not math.isfinite(obj):
        return None
    return obj


# ── Global state ──
# Replaceable before startup (lifespan reads these at run time).
session = JournalSession(SQLiteTradeStore(settings.DB_PATH))
preferences = LocalPreferences(settings.PREFS_PATH)


@asynccontextmanager
async def lifespan(app: FastAPI):
    for problem in settings.validate():
        logger.warning("Config: %s", problem)
    logger.info("Theme on startup: %s", preferences.get_theme().value)
    await session.load()
    yield


app = FastAPI(title="Trade Journal API", version="1.0.0", lifespan=lifespan)

_cors_origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    # errors echo the rejected input, which may be NaN/Infinity
    detail = sanitize_for_json(jsonable_encoder(exc.errors()))
    return JSONResponse(status_code=422, content={"detail": detail})


# ── Request/Response Models ──
class ResetRequest(BaseModel):
    confirm: bool = False


class CapitalRequest(BaseModel):
    initial_capital: Union[float, str]


@app.get("/api/health")
def health():
    return {"status": "ok"}


# ──────────────────────────────────────
# DASHBOARD & STATS
# ──────────────────────────────────────

@app.get("/api/dashboard")
async def dashboard():
    return {**session.dashboard(), "theme": preferences.get_theme().value}


@app.get("/api/stats")
async def stats():
    return session.stats()


# ──────────────────────────────────────
# JOURNAL
# ──────────────────────────────────────

@app.get("/api/trades")
async def list_trades(search: str = "", pair: str = "", result: str = ""):
    trades = session.filtered_trades(TradeFilter(search_term=search, pair=pair, result=result))
    return [t.model_dump(mode="json") for t in trades]


@app.get("/api/trades/pairs")
async def list_pairs():
    return session.pairs()


@app.get("/api/trades/form")
async def blank_form():
    return TradeForm().model_dump(mode="json")


@app.get("/api/trades/{trade_id}/form")
async def edit_form(trade_id: str):
    trade = session.find(trade_id)
    if not trade:
        raise HTTPException(status_code=404, detail="Trade not found")
    return trade_to_form(trade).model_dump(mode="json")


@app.post("/api/trades")
async def create_trade(req: TradeSubmission):
    try:
        trade = await session.submit(req)
    except JournalError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return trade.model_dump(mode="json")


@app.put("/api/trades/{trade_id}")
async def update_trade(trade_id: str, req: TradeSubmission):
    try:
        trade = await session.submit(req, editing_id=trade_id)
    except TradeNotFound:
        raise HTTPException(status_code=404, detail="Trade not found")
    except JournalError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return trade.model_dump(mode="json")


@app.delete("/api/trades/{trade_id}")
async def delete_trade(trade_id: str):
    try:
        await session.delete_one(trade_id)
    except TradeNotFound:
        raise HTTPException(status_code=404, detail="Trade not found")
    except JournalError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"success": True}


@app.post("/api/trades/reset")
async def reset_trades(req: ResetRequest):
    if not req.confirm:
        raise HTTPException(status_code=400, detail="Reset requires confirm=true")
    try:
        deleted = await session.reset_all()
    except JournalError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"success": True, "deleted": deleted}


@app.post("/api/trades/refresh")
async def refresh_trades():
    if not await session.refetch():
        raise HTTPException(status_code=500, detail="Failed to load data.")
    return {"success": True, "count": len(session.state.trades)}


# ──────────────────────────────────────
# SETTINGS, EXPORT, THEME
# ──────────────────────────────────────

@app.get("/api/settings")
async def get_settings():
    return {"initial_capital": session.state.initial_capital}


@app.put("/api/settings")
async def update_settings(req: CapitalRequest):
    try:
        applied = await session.update_capital(req.initial_capital)
    except JournalError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"initial_capital": session.state.initial_capital, "applied": applied}


@app.get("/api/export")
async def export_csv():
    return Response(
        content=trades_to_csv(session.state.trades),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={EXPORT_FILENAME}"},
    )


@app.get("/api/theme")
def get_theme():
    return {"theme": preferences.get_theme().value}


@app.post("/api/theme/toggle")
def toggle_theme():
    return {"theme": preferences.toggle_theme().value}


@app.delete("/api/error")
async def dismiss_error():
    session.dismiss_error()
    return {"success": True}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
