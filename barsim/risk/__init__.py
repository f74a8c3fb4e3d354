"""Risk tracking: stop/target levels, risk percentage, R-multiples."""

from barsim.risk.tracker import (
    init_late_stop_risk,
    init_position_risk,
    r_multiple,
    ratchet_stop,
    risk_pct,
    stop_breached,
    stop_level,
    target_breached,
    target_level,
    tighter_stop,
    update_position_risk,
)

__all__ = [
    "init_late_stop_risk",
    "init_position_risk",
    "r_multiple",
    "ratchet_stop",
    "risk_pct",
    "stop_breached",
    "stop_level",
    "target_breached",
    "target_level",
    "tighter_stop",
    "update_position_risk",
]
