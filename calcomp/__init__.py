"""
Cleaning, title classification and aggregation core for the California
public-employee compensation report.

The flow, in dependency order:

1. **normalizer** - one raw CSV row -> canonical `CompensationRecord`.
2. **classifier** - canonical title + curated mapping -> category and
   academic flag, via an ordered fallback table.
3. **aggregator** - headcount and mean pay per (year, category) or
   (year, academic flag), with non-destructive noise filters.
4. **trends** - cross-year long tables, year-over-year changes, spend shares
   and headcount vs enrollment.

`loaders`, `settings` and `quality` support the pipeline; charts and the
console report live in `analyses` and `visualizers`.
"""

from .aggregator import aggregate, aggregates_frame, apply_filters, records_frame  # noqa: F401
from .classifier import (  # noqa: F401
    FallbackRules,
    MappingConflictError,
    MappingTable,
    classify,
    classify_all,
    unmatched_titles,
)
from .models import (  # noqa: F401
    AggregateFilters,
    CategoryAggregate,
    ClassifiedRecord,
    CompensationRecord,
    TitleMapping,
    TrendTable,
)
from .normalizer import canonical_name, canonical_title, normalize  # noqa: F401
from .trends import category_shares, headcount_vs_enrollment, spend_shares, trend  # noqa: F401
