"""
Configuration for the OI history engine.

Deployment constants are read from the environment (a local ``.env`` file is
honoured). Per-invocation view parameters live in :class:`HistoryViewConfig`.
"""

from __future__ import annotations

import numbers
import os
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Optional, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from .errors import InvalidParameter

load_dotenv()


def _get_env_int(var_name: str, default: int) -> int:
    """Safely parse an environment variable as int with a fallback."""
    value = os.getenv(var_name)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _get_env_str(var_name: str, default: str) -> str:
    value = os.getenv(var_name)
    return value.strip() if value and value.strip() else default


# ==============================================================================
# --- CONFIGURATION ---
# ==============================================================================

# --- Contract Parameters ---
LOT_SIZE = _get_env_int("OI_HISTORY_LOT_SIZE", 65)
STRIKE_STEP = _get_env_int("OI_HISTORY_STRIKE_STEP", 50)
OI_VALUE_DIVISOR = 100000  # Notional OI value is reported in lakhs

# --- Symbol Configuration ---
SYMBOL_CONFIGS = {
    'NIFTY': {
        'display_name': 'NIFTY 50',
        'strike_step': 50,
    },
    'BANKNIFTY': {
        'display_name': 'BANKNIFTY',
        'strike_step': 100,
    },
    'FINNIFTY': {
        'display_name': 'FINNIFTY',
        'strike_step': 50,
    },
}
DEFAULT_SYMBOL = 'NIFTY'

# --- View Defaults ---
DEFAULT_STRIKE_BREADTH = 5
STRIKE_BREADTH_CHOICES = (3, 5, 7, 9)
AVAILABLE_DATE_DAYS = 7
OI_SCALE_HEADROOM = 1.05

# --- Timezone ---
DISPLAY_TIMEZONE = _get_env_str("OI_HISTORY_TIMEZONE", "Asia/Kolkata")

# --- Logging ---
LOG_FILE_NAME = _get_env_str("OI_HISTORY_LOG_FILE", "oi_history.log")
FILE_LOG_LEVEL = _get_env_str("OI_HISTORY_LOG_LEVEL", "INFO")
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(module)s - %(message)s'


class TimeFilter(str, Enum):
    """Recency window applied on top of the date filter."""

    LAST_1H = "1h"
    LAST_3H = "3h"
    LAST_6H = "6h"
    ALL = "all"

    @property
    def hours(self) -> Optional[int]:
        return TIME_FILTER_HOURS.get(self)

    @classmethod
    def parse(cls, value: Union["TimeFilter", str, None]) -> "TimeFilter":
        if value is None or value == "":
            return cls.ALL
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise InvalidParameter(
                f"Unknown time filter {value!r}; expected one of: {choices}"
            ) from None


TIME_FILTER_HOURS: Dict[TimeFilter, int] = {
    TimeFilter.LAST_1H: 1,
    TimeFilter.LAST_3H: 3,
    TimeFilter.LAST_6H: 6,
}


def validate_strike_breadth(breadth) -> int:
    """Return ``breadth`` if it is a positive odd integer, else raise."""
    if isinstance(breadth, bool) or not isinstance(breadth, numbers.Integral):
        raise InvalidParameter(f"strike breadth must be an integer, got {breadth!r}")
    if breadth <= 0 or breadth % 2 == 0:
        raise InvalidParameter(
            f"strike breadth must be a positive odd integer, got {breadth}"
        )
    return int(breadth)


def validate_strike_step(step) -> Union[int, float]:
    if isinstance(step, bool) or not isinstance(step, (int, float)) or step <= 0:
        raise InvalidParameter(f"strike step must be a positive number, got {step!r}")
    return step


def validate_timezone(name) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, TypeError, ValueError):
        raise InvalidParameter(f"Unknown timezone {name!r}") from None


def get_symbol_config(symbol: str) -> Dict:
    key = (symbol or '').upper()
    if key not in SYMBOL_CONFIGS:
        choices = ", ".join(SYMBOL_CONFIGS)
        raise InvalidParameter(f"Unknown symbol {symbol!r}; expected one of: {choices}")
    return SYMBOL_CONFIGS[key]


@dataclass(frozen=True)
class HistoryViewConfig:
    """Filter and presentation parameters for one engine invocation."""

    selected_date: Optional[date] = None
    time_filter: TimeFilter = TimeFilter.ALL
    strike_breadth: int = DEFAULT_STRIKE_BREADTH
    lot_size: int = LOT_SIZE
    strike_step: Union[int, float] = STRIKE_STEP
    timezone: str = DISPLAY_TIMEZONE

    def __post_init__(self) -> None:
        # Frozen dataclass: normalise through object.__setattr__.
        object.__setattr__(self, "time_filter", TimeFilter.parse(self.time_filter))
        validate_strike_breadth(self.strike_breadth)
        validate_strike_step(self.strike_step)
        if isinstance(self.lot_size, bool) or not isinstance(self.lot_size, int) or self.lot_size <= 0:
            raise InvalidParameter(f"lot size must be a positive integer, got {self.lot_size!r}")
        validate_timezone(self.timezone)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def for_symbol(cls, symbol: str, **overrides) -> "HistoryViewConfig":
        """Build a config using the strike step registered for ``symbol``."""
        overrides.setdefault("strike_step", get_symbol_config(symbol)["strike_step"])
        return cls(**overrides)


@dataclass(frozen=True)
class ColumnVisibility:
    """Which per-side column groups the table renderer shows."""

    oi: bool = True
    volume: bool = True
    iv: bool = True
    ltp: bool = True
    oi_value: bool = False

    @classmethod
    def from_names(cls, names: Tuple[str, ...]) -> "ColumnVisibility":
        aliases = {"oi": "oi", "volume": "volume", "iv": "iv", "ltp": "ltp",
                   "oivalue": "oi_value", "oi_value": "oi_value"}
        selected = set()
        for name in names:
            key = aliases.get(name.strip().lower())
            if key is None:
                raise InvalidParameter(f"Unknown column group {name!r}")
            selected.add(key)
        return cls(**{field: field in selected for field in ("oi", "volume", "iv", "ltp", "oi_value")})
