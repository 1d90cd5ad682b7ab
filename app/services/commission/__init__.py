"""
Commission services package.

- commission_calculator: decaying upline commission and statistics
"""

from app.services.commission.commission_calculator import (
    CommissionCalculator,
    CommissionLine,
    CommissionPreview,
    period_start,
)


__all__ = [
    "CommissionCalculator",
    "CommissionLine",
    "CommissionPreview",
    "period_start",
]
