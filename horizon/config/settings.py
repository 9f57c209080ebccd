"""Environment settings loaded from .env file."""
import os

from dotenv import load_dotenv

from horizon.errors import InvalidParameterError

load_dotenv()

# --- Backtest defaults ---
DEFAULT_INITIAL_CAPITAL: float = float(os.getenv("HORIZON_INITIAL_CAPITAL", "10000"))
DEFAULT_POSITION_SIZE_PCT: float = float(os.getenv("HORIZON_POSITION_SIZE_PCT", "50"))

# --- Logging / IO ---
LOG_LEVEL: str = os.getenv("HORIZON_LOG_LEVEL", "WARNING").upper()
DATA_DIR: str = os.getenv("HORIZON_DATA_DIR", "data")

# --- Fixed constants ---
TRADING_DAYS_PER_YEAR: int = 252
DAYS_PER_YEAR: float = 365.25
MACD_STRENGTH_CAP: float = 10.0


def validate_capital(capital: float) -> None:
    """Raise if the starting capital is not a positive number."""
    if not capital > 0:
        raise InvalidParameterError(f"initial capital must be positive, got {capital}")


def validate_position_size(pct: float) -> None:
    """Raise if the position size is outside (0, 100]."""
    if not 0 < pct <= 100:
        raise InvalidParameterError(
            f"position size percent must be in (0, 100], got {pct}"
        )
