"""
Journal session: the application state and every mutation of it.

The in-memory trade list is changed only from the event loop. Store calls
run in worker threads; each mutation is applied locally first, then sent
to the store, and on failure the local state is thrown away and re-read
from the store.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

from config.settings import settings
from tradejournal.core.editor import parse_capital, prepare
from tradejournal.core.filters import apply_filters
from tradejournal.core.stats import (
    compute_kpi,
    daily_pnl,
    equity_curve,
    result_breakdown,
    return_pct,
    unique_pairs,
)
from tradejournal.database import MAX_BATCH, StoreError
from tradejournal.models.trade import KPI, Trade, TradeFilter, TradeForm

logger = logging.getLogger("tradejournal.session")

LOAD_ERROR = "Failed to load data."
SAVE_ERROR = "Failed to save trade."
DELETE_ERROR = "Failed to delete trade."
RESET_ERROR = "Failed to reset data."
CAPITAL_ERROR = "Failed to update capital"


class JournalError(Exception):
    """A mutation failed; state has been reconciled with the store."""


class TradeNotFound(JournalError):
    pass


@dataclass
class JournalState:
    trades: list[Trade] = field(default_factory=list)
    initial_capital: float = settings.DEFAULT_INITIAL_CAPITAL
    loading: bool = False
    error: Optional[str] = None
    filters: TradeFilter = field(default_factory=TradeFilter)


class JournalSession:
    def __init__(self, store, fetch_limit: int = None, batch_size: int = None):
        self.store = store
        self.fetch_limit = fetch_limit or settings.TRADE_FETCH_LIMIT
        self.batch_size = min(batch_size or settings.DELETE_BATCH_SIZE, MAX_BATCH)
        self.state = JournalState()
        self._version = 0
        self._kpi_cache: Optional[tuple] = None

    async def _call(self, fn, *args):
        return await asyncio.to_thread(fn, *args)

    def _set_trades(self, trades: list[Trade]):
        self.state.trades = trades
        self._version += 1

    # ── Loading ──────────────────────────────────────────────

    async def load(self) -> bool:
        """Initial bulk fetch. Failure leaves an empty list and a banner."""
        self.state.loading = True
        try:
            trades, app_settings = await asyncio.gather(
                self._call(self.store.list_trades, self.fetch_limit),
                self._call(self.store.get_settings),
            )
        except StoreError as e:
            logger.error("Initial load failed: %s", e)
            self._set_trades([])
            self.state.error = LOAD_ERROR
            return False
        finally:
            self.state.loading = False
        self._set_trades(trades)
        self.state.initial_capital = app_settings.initial_capital
        self.state.error = None
        return True

    async def refetch(self) -> bool:
        try:
            trades = await self._call(self.store.list_trades, self.fetch_limit)
        except StoreError as e:
            logger.error("Refetch failed: %s", e)
            return False
        self._set_trades(trades)
        return True

    async def _reconcile(self, message: str, err: Exception) -> JournalError:
        """Report a failed mutation and replace local state with the store's."""
        logger.error("%s %s", message, err)
        self.state.error = message
        await self.refetch()
        return JournalError(message)

    # ── Mutations ──────────────────────────────────────────────

    def find(self, trade_id: str) -> Optional[Trade]:
        return next((t for t in self.state.trades if t.id == trade_id), None)

    async def submit(self, form: TradeForm, editing_id: Optional[str] = None) -> Trade:
        """Create or replace a trade, optimistically."""
        record = prepare(form)
        if editing_id:
            existing = self.find(editing_id)
            if existing is None:
                raise TradeNotFound(f"Trade {editing_id} not found")
            updated = record.model_copy(update={
                "id": editing_id,
                "created_at": existing.created_at,
                "updated_at": existing.updated_at,
            })
            self._set_trades([updated if t.id == editing_id else t for t in self.state.trades])
            fields = record.model_dump(mode="json", exclude={"id", "created_at", "updated_at"})
            try:
                await self._call(self.store.update_trade, editing_id, fields)
            except StoreError as e:
                raise await self._reconcile(SAVE_ERROR, e) from e
            return updated

        temp_id = f"temp-{uuid.uuid4().hex}"
        self._set_trades([record.model_copy(update={"id": temp_id})] + self.state.trades)
        try:
            new_id = await self._call(self.store.create_trade, record)
        except StoreError as e:
            raise await self._reconcile(SAVE_ERROR, e) from e
        created = record.model_copy(update={"id": new_id})
        self._set_trades([created if t.id == temp_id else t for t in self.state.trades])
        return created

    async def delete_one(self, trade_id: str):
        if self.find(trade_id) is None:
            raise TradeNotFound(f"Trade {trade_id} not found")
        self._set_trades([t for t in self.state.trades if t.id != trade_id])
        try:
            await self._call(self.store.delete_trade, trade_id)
        except StoreError as e:
            raise await self._reconcile(DELETE_ERROR, e) from e

    async def reset_all(self) -> int:
        """Delete every stored trade in bounded batches, then clear the list."""
        deleted = 0
        self.state.loading = True
        try:
            while True:
                n = await self._call(self.store.delete_trades, self.batch_size)
                deleted += n
                if n < self.batch_size:
                    break
        except StoreError as e:
            raise await self._reconcile(RESET_ERROR, e) from e
        finally:
            self.state.loading = False
        self._set_trades([])
        logger.info("Reset journal, %d trades deleted", deleted)
        return deleted

    async def update_capital(self, raw) -> bool:
        """Returns False when the input is not a number (nothing is changed)."""
        capital = parse_capital(raw)
        if capital is None:
            return False
        self.state.initial_capital = capital
        try:
            await self._call(self.store.set_settings, {"initial_capital": capital})
        except StoreError as e:
            logger.error("%s %s", CAPITAL_ERROR, e)
            self.state.error = CAPITAL_ERROR
            try:
                self.state.initial_capital = (await self._call(self.store.get_settings)).initial_capital
            except StoreError as reread_err:
                logger.error("Settings re-read failed: %s", reread_err)
            raise JournalError(CAPITAL_ERROR) from e
        return True

    def dismiss_error(self):
        self.state.error = None

    # ── Derived views ──────────────────────────────────────────────

    def kpi(self) -> KPI:
        key = (self._version, self.state.initial_capital)
        if self._kpi_cache is None or self._kpi_cache[0] != key:
            self._kpi_cache = (key, compute_kpi(self.state.trades, self.state.initial_capital))
        return self._kpi_cache[1]

    def filtered_trades(self, trade_filter: Optional[TradeFilter] = None) -> list[Trade]:
        if trade_filter is not None:
            self.state.filters = trade_filter
        return apply_filters(self.state.trades, self.state.filters)

    def pairs(self) -> list[str]:
        return unique_pairs(self.state.trades)

    def dashboard(self) -> dict:
        kpi = self.kpi()
        return {
            "kpi": kpi.model_dump(),
            "initial_capital": self.state.initial_capital,
            "current_balance": kpi.current_balance,
            "return_pct": return_pct(kpi.total_profit, self.state.initial_capital),
            "loading": self.state.loading,
            "error": self.state.error,
        }

    def stats(self) -> dict:
        trades = self.state.trades
        return {
            "kpi": self.kpi().model_dump(),
            "equity_curve": equity_curve(trades),
            "daily_pnl": daily_pnl(trades),
            "result_breakdown": result_breakdown(trades),
        }
