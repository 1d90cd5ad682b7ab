"""
Standard type definitions for database models.

Provides consistent types for monetary and rate fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for prices, order totals and commissions
# Precision: 18 digits total, 8 after decimal point
# Range: up to 9,999,999,999.99999999
MoneyType = DECIMAL(18, 8)

# Commission rate as a fraction (e.g. 0.08000000 = 8%)
# Precision: 10 digits total, 8 after decimal point
RateType = DECIMAL(10, 8)
