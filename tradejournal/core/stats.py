"""
Statistics engine — KPIs and chart series over a list of trades.
Pure functions: no I/O, inputs are never mutated.
"""
from datetime import datetime, timezone

import pandas as pd

from tradejournal.models.trade import KPI, Trade, TradeResult


def format_date(timestamp_ms: int) -> str:
    """Display format used throughout the journal, e.g. 'Jan 5, 2024'."""
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return f"{dt:%b} {dt.day}, {dt.year}"


def format_currency(amount: float) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def compute_kpi(trades: list[Trade], initial_capital: float) -> KPI:
    """Aggregate performance metrics for the given trades."""
    if not trades:
        return KPI(current_balance=initial_capital)

    wins = [t for t in trades if t.result == TradeResult.WIN]
    losses = [t for t in trades if t.result == TradeResult.LOSS]
    break_even = [t for t in trades if t.result == TradeResult.BREAK_EVEN]
    total_profit = sum(t.profit for t in trades)

    # Per-pair totals in first-encounter order; sorted() is stable so ties
    # go to the pair seen first.
    pair_profits: dict[str, float] = {}
    for t in trades:
        pair_profits[t.pair] = pair_profits.get(t.pair, 0.0) + t.profit
    totals = list(pair_profits.items())
    best_pair = sorted(totals, key=lambda p: -p[1])[0][0]
    worst_pair = sorted(totals, key=lambda p: p[1])[0][0]

    return KPI(
        total_trades=len(trades),
        wins=len(wins),
        losses=len(losses),
        break_even=len(break_even),
        total_profit=total_profit,
        win_rate=len(wins) / len(trades) * 100,
        avg_profit=sum(t.profit for t in wins) / len(wins) if wins else 0.0,
        avg_loss=sum(t.profit for t in losses) / len(losses) if losses else 0.0,
        best_pair=best_pair,
        worst_pair=worst_pair,
        current_balance=initial_capital + total_profit,
    )


def return_pct(total_profit: float, initial_capital: float) -> float:
    if not initial_capital:
        return 0.0
    return total_profit / initial_capital * 100


def unique_pairs(trades: list[Trade]) -> list[str]:
    return sorted({t.pair for t in trades})


def _to_frame(trades: list[Trade]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "timestamp": [t.date for t in trades],
            "profit": [t.profit for t in trades],
        }
    )


def equity_curve(trades: list[Trade]) -> list[dict]:
    """Cumulative profit, one point per trade, oldest first.

    Trades sharing a timestamp keep their original relative order.
    """
    if not trades:
        return []
    df = _to_frame(trades).sort_values("timestamp", kind="stable")
    df["equity"] = df["profit"].cumsum()
    return [
        {"date": format_date(ts), "timestamp": int(ts), "equity": float(eq)}
        for ts, eq in zip(df["timestamp"].tolist(), df["equity"].tolist())
    ]


def daily_pnl(trades: list[Trade]) -> list[dict]:
    """Profit summed per UTC calendar day, ascending by day.

    Grouping uses the ISO day, not the display label: 'Jan 5' of two
    different years are separate bars.
    """
    if not trades:
        return []
    df = _to_frame(trades)
    df["day"] = pd.to_datetime(df["timestamp"], unit="ms", utc=True).dt.strftime("%Y-%m-%d")
    daily = df.groupby("day", sort=True).agg(profit=("profit", "sum"), timestamp=("timestamp", "min"))
    return [
        {"day": day, "date": format_date(int(ts)), "profit": float(profit)}
        for day, profit, ts in zip(daily.index, daily["profit"].tolist(), daily["timestamp"].tolist())
    ]


def result_breakdown(trades: list[Trade]) -> list[dict]:
    """Win / Loss / BreakEven counts, zero-count categories omitted."""
    counts = [
        {"name": r.value, "value": sum(1 for t in trades if t.result == r)}
        for r in (TradeResult.WIN, TradeResult.LOSS, TradeResult.BREAK_EVEN)
    ]
    return [c for c in counts if c["value"] > 0]
