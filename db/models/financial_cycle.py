"""
db/models/financial_cycle.py

Financial cycle ("last update") dimension partitioning game plans
alongside country.
"""

from __future__ import annotations

from db.base import Base, NamedDimensionMixin


class FinancialCycle(Base, NamedDimensionMixin):
    __tablename__ = "financial_cycles"
