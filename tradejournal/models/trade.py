from datetime import datetime, timezone
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from enum import Enum


class Position(str, Enum):
    BUY = "Buy"
    SELL = "Sell"


class TradeResult(str, Enum):
    WIN = "Win"
    LOSS = "Loss"
    BREAK_EVEN = "BreakEven"


class Theme(str, Enum):
    DARK = "dark"
    LIGHT = "light"


def _today_str() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


class Trade(BaseModel):
    id: Optional[str] = None
    date: int                   # epoch ms, UTC midnight of the chosen day
    pair: str
    position: Position
    lot: float
    profit: float               # entered directly, never derived from prices
    result: TradeResult
    notes: str = ""
    # Legacy price fields, always zero/None from the editor
    entry: Optional[float] = None
    exit: Optional[float] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    # Store-assigned
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class TradeForm(BaseModel):
    date_str: str = Field(default_factory=_today_str, description="Calendar day, YYYY-MM-DD")
    pair: str = ""
    position: Position = Position.BUY
    lot: float = Field(default=0.01, gt=0, allow_inf_nan=False)
    profit: float = Field(default=0.0, allow_inf_nan=False)
    notes: str = ""

    @field_validator("date_str")
    @classmethod
    def _check_date(cls, v: str) -> str:
        datetime.strptime(v.strip(), "%Y-%m-%d")
        return v.strip()


class TradeSubmission(TradeForm):
    """Form as submitted; unlike the blank form, pair is required."""

    @field_validator("pair")
    @classmethod
    def _check_pair(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("pair must not be empty")
        return v.strip()


class AppSettings(BaseModel):
    initial_capital: float = 1000.0


class KPI(BaseModel):
    total_trades: int = 0
    wins: int = 0
    losses: int = 0
    break_even: int = 0
    total_profit: float = 0.0
    win_rate: float = 0.0       # 0-100
    avg_profit: float = 0.0     # mean over winning trades
    avg_loss: float = 0.0       # mean over losing trades, non-positive
    best_pair: str = "-"
    worst_pair: str = "-"
    current_balance: float = 0.0


class TradeFilter(BaseModel):
    search_term: str = ""
    pair: str = ""
    result: str = ""
