"""
Seat inventory and revenue ledgers.

- inventory.py: clamped seat increment/decrement under a train row lock
- revenue.py: revenue accrual and guarded reversal, driven by payment and
  refund transitions
"""

from .inventory import InventoryLedger
from .revenue import RevenueLedger, payment_revenue_effect, ACCRUE, REVERSE

__all__ = [
    "InventoryLedger",
    "RevenueLedger",
    "payment_revenue_effect",
    "ACCRUE",
    "REVERSE"
]
