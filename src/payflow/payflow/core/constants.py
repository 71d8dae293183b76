"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
Money amounts are integer centavos.
"""

from datetime import time

# Shift window used by the attendance reconciler
SHIFT_START = time(7, 0)
SHIFT_END = time(17, 30)
INTERN_SHIFT_END = time(16, 0)
LUNCH_START = time(12, 0)
LUNCH_END = time(13, 0)
MAX_DAILY_HOURS = 8
HALF_DAY_HOURS = 4.0

# Punch classification windows (minutes since midnight)
TIME_IN_WINDOW_START = 6 * 60
TIME_IN_WINDOW_END = 13 * 60 + 59
TIME_OUT_WINDOW_START = 16 * 60

DEFAULT_INTERN_ALIASES = frozenset(
    {
        "bianca",
        "biancamae",
        "daniel",
        "daniella",
        "daryl",
        "jane",
        "janec",
        "kenneth",
        "sophia",
        "mara",
        "rhen",
        "raiven",
    }
)

# Payroll
DEFAULT_REQUIRED_EXEC_APPROVALS = 2
DEFAULT_MONTHLY_DAY_DIVISOR = 22
DEFAULT_INTERN_DAILY_ALLOWANCE = 125_00
OWNER_CUTOFF_PAY = 60_000_00

INTERN_OB_RATE = 500_00
ASSISTED_OB_RATE = 1_500_00
VIDEOGRAPHER_OB_RATE = 2_500_00
TALENT_OB_RATE = 2_000_00

DEFAULT_SSS_CONTRIBUTION = 425_00
DEFAULT_PAGIBIG_CONTRIBUTION = 100_00
DEFAULT_PHILHEALTH_CONTRIBUTION = 212_50

TARDINESS_MINUTES_PER_DAY = 480
