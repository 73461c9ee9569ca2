"""
Trade editor — turns raw form fields into a persistable Trade.
"""
import math
from datetime import datetime, timezone
from typing import Optional

from tradejournal.models.trade import Trade, TradeForm, TradeResult


def classify_result(profit: float) -> TradeResult:
    if profit > 0:
        return TradeResult.WIN
    if profit < 0:
        return TradeResult.LOSS
    return TradeResult.BREAK_EVEN


def parse_date(date_str: str) -> int:
    """'YYYY-MM-DD' -> epoch ms at UTC midnight."""
    dt = datetime.strptime(date_str.strip(), "%Y-%m-%d").replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def prepare(form: TradeForm) -> Trade:
    """Normalize form fields into a trade record (no id yet)."""
    pair = form.pair.strip().upper()
    if not pair:
        raise ValueError("pair must not be empty")
    return Trade(
        date=parse_date(form.date_str),
        pair=pair,
        position=form.position,
        lot=form.lot,
        profit=form.profit,
        result=classify_result(form.profit),
        notes=form.notes,
        entry=0,
        exit=0,
        stop_loss=None,
        take_profit=None,
    )


def trade_to_form(trade: Trade) -> TradeForm:
    """Prefill the editor from an existing trade."""
    date_str = datetime.fromtimestamp(trade.date / 1000, tz=timezone.utc).strftime("%Y-%m-%d")
    return TradeForm(
        date_str=date_str,
        pair=trade.pair,
        position=trade.position,
        lot=trade.lot,
        profit=trade.profit,
        notes=trade.notes,
    )


def parse_capital(raw) -> Optional[float]:
    """Parse a capital amount; None means the input is not a usable number."""
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value
