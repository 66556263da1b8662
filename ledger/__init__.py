"""
TRAINER LEDGER ENGINE
Package allocation and weekly trainer income
"""

from .models import WeeklyInput, WeeklyResult
from .processor import WeeklyDashboardProcessor

__all__ = ['WeeklyDashboardProcessor', 'WeeklyInput', 'WeeklyResult']
