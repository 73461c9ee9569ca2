"""
CSV export of the journal.
"""
from datetime import datetime, timezone

from tradejournal.models.trade import Trade

EXPORT_FILENAME = "trades_export.csv"
HEADERS = ["Date", "Pair", "Position", "Lot", "Profit", "Result", "Notes"]


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _field(value) -> str:
    text = str(value)
    if any(c in text for c in ',"\n\r'):
        return _quote(text)
    return text


def _number(value: float) -> str:
    # 45.0 -> "45", 0.01 -> "0.01"
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def trades_to_csv(trades: list[Trade]) -> str:
    """One row per trade in the given order; notes are always quoted."""
    lines = [",".join(HEADERS)]
    for t in trades:
        day = datetime.fromtimestamp(t.date / 1000, tz=timezone.utc).strftime("%Y-%m-%d")
        lines.append(",".join([
            day,
            _field(t.pair),
            t.position.value,
            _number(t.lot),
            _number(t.profit),
            t.result.value,
            _quote(t.notes),
        ]))
    return "\n".join(lines)
