# calcomp/models.py
"""
Domain records shared by the normalizer, classifier, aggregator and trend reporter.

Records are frozen dataclasses: a row is normalized once and then only ever
copied (never edited) when the classifier attaches its category.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from decimal import Decimal
from typing import FrozenSet, List, Optional

import pandas as pd

from .constants import RULE_UNMATCHED, UNCLASSIFIED_CATEGORY, UNREADABLE_TITLE

ZERO = Decimal(0)


@dataclass(frozen=True)
class CompensationRecord:
    """One employee-year of compensation, in canonical form."""
    name: str
    title: str
    year: int
    agency: str = ""
    base_pay: Decimal = ZERO
    overtime_pay: Decimal = ZERO
    benefits: Decimal = ZERO
    total_pay: Decimal = ZERO
    total_pay_benefits: Decimal = ZERO
    raw_title: str = ""
    degraded_fields: FrozenSet[str] = frozenset()

    @property
    def degraded(self) -> bool:
        return bool(self.degraded_fields)

    @property
    def title_readable(self) -> bool:
        return self.title != UNREADABLE_TITLE

    @property
    def pay_excluding_benefits(self) -> Decimal:
        return self.total_pay_benefits - self.benefits

    def value(self, field_name: str) -> Decimal:
        """Returns one of the compensation amounts by attribute name."""
        return getattr(self, field_name)

    def ordering_violations(self) -> List[str]:
        """
        Lists the broken links of total_pay_benefits >= total_pay >= base_pay.
        Source data breaks this regularly; callers report it, nothing rejects it.
        """
        broken = []
        if self.total_pay_benefits < self.total_pay:
            broken.append("total_pay_benefits < total_pay")
        if self.total_pay < self.base_pay:
            broken.append("total_pay < base_pay")
        return broken

    def classified(self, category: str, academic: bool, match_rule: str) -> "ClassifiedRecord":
        values = {f.name: getattr(self, f.name) for f in fields(CompensationRecord)}
        return ClassifiedRecord(**values, category=category, academic=academic, match_rule=match_rule)


@dataclass(frozen=True)
class ClassifiedRecord(CompensationRecord):
    category: str = UNCLASSIFIED_CATEGORY
    academic: bool = False
    match_rule: str = RULE_UNMATCHED


@dataclass(frozen=True)
class TitleMapping:
    title: str
    category: str
    academic: bool


@dataclass(frozen=True)
class CategoryAggregate:
    category: str
    year: int
    count: int
    mean: float
    value_field: str = "total_pay"


@dataclass(frozen=True)
class AggregateFilters:
    """Suppression thresholds for noisy groups. Both disabled by default."""
    min_count: Optional[int] = None
    min_mean: Optional[float] = None

    @property
    def enabled(self) -> bool:
        return self.min_count is not None or self.min_mean is not None

    def accepts(self, aggregate: CategoryAggregate) -> bool:
        if self.min_count is not None and aggregate.count < self.min_count:
            return False
        if self.min_mean is not None and aggregate.mean < self.min_mean:
            return False
        return True


@dataclass
class TrendTable:
    """
    Cross-year comparison tables.

    long:    year, category, mean, count (one row per aggregate)
    changes: year-over-year percent change per category, with a status column
             explaining every undefined value
    """
    long: pd.DataFrame
    changes: pd.DataFrame
    years: List[int] = field(default_factory=list)
    missing_years: List[int] = field(default_factory=list)
