"""ATM strike and strike-window selection."""

from __future__ import annotations

from typing import List

from .config import STRIKE_STEP, validate_strike_breadth, validate_strike_step
from .models import Strike


def atm_strike(spot_price: float, strike_step: Strike = STRIKE_STEP) -> Strike:
    """
    Strike nearest to ``spot_price`` on a ``strike_step`` grid.

    Uses Python's ``round`` (half-to-even), so an exact half step such as
    24975 / 50 = 499.5 resolves to the even multiple (25000).
    """
    validate_strike_step(strike_step)
    return round((spot_price or 0) / strike_step) * strike_step


def select_window(spot_price: float, breadth: int, strike_step: Strike = STRIKE_STEP) -> List[Strike]:
    """
    Ascending strikes centred on the ATM strike.

    Parameters
    ----------
    spot_price:
        Underlying price; values <= 0 are accepted and centre the window on 0.
    breadth:
        Number of strikes to return. Must be a positive odd integer.
    strike_step:
        Distance between consecutive strikes.
    """
    breadth = validate_strike_breadth(breadth)
    atm = atm_strike(spot_price, strike_step)
    half = (breadth - 1) // 2
    return [atm + offset * strike_step for offset in range(-half, half + 1)]
