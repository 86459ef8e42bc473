"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Remarks text that acknowledges a visit was allowed on credit (matched case-insensitively)
DEFERRAL_MARKERS = ("marked as due", "pay later")
DEFERRED_REMARKS = "Marked as due"

DEFAULT_ATTENDANCE_REMARKS = "Auto: {treatment} attendance"

# MySQL server error codes that mean "retry the whole transaction"
MYSQL_LOCK_WAIT_TIMEOUT = 1205
MYSQL_DEADLOCK = 1213
