"""
Business logic constants for the purchase engine.

Central location for business rules and constants used across the application.
This module has no imports from app.services, so it can be used anywhere
without circular dependencies.
"""

from decimal import Decimal


# Each commission level pays 80% of the previous level's rate
COMMISSION_DECAY_FACTOR = Decimal("0.8")

# A commission line is created only if its amount is strictly above this
MIN_COMMISSION_AMOUNT = Decimal("0.01")

# Stored precision for money and rates
MONEY_QUANTUM = Decimal("0.01")
RATE_QUANTUM = Decimal("0.00000001")

# Default traversal bounds (overridable via settings)
DEFAULT_ANCESTOR_MAX_DEPTH = 10
DEFAULT_COMMISSION_MAX_DEPTH = 5

# Lookup cache defaults (overridable via settings)
DEFAULT_CACHE_TTL_SECONDS = 300.0
DEFAULT_CACHE_MAX_SIZE = 1000

# Purchase order numbers: PO + ms timestamp + random suffix
ORDER_NO_PREFIX = "PO"
ORDER_NO_RANDOM_LENGTH = 6

# Commission statistics periods
COMMISSION_STATS_PERIODS = ("day", "week", "month", "year")

# Order listing
ORDER_LIST_ROLES = ("buyer", "seller")
DEFAULT_ORDERS_PER_PAGE = 20
MAX_ORDERS_PER_PAGE = 100
