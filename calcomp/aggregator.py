# -*- coding: utf-8 -*-
"""
Group-by aggregation of classified records.

`aggregate` returns one CategoryAggregate per (year, group) with the headcount
and the arithmetic mean of the chosen compensation field. Noisy groups are
suppressed through AggregateFilters, which produce a filtered copy and never
touch the full aggregate list.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

import pandas as pd
from loguru import logger

from .constants import ACADEMIC_LABEL, GROUP_KEYS, NON_ACADEMIC_LABEL, VALUE_FIELDS
from .models import AggregateFilters, CategoryAggregate, ClassifiedRecord

AGGREGATE_COLUMNS = ["year", "category", "count", "mean", "value_field"]


def records_frame(records: Iterable[ClassifiedRecord]) -> pd.DataFrame:
    """
    Flattens classified records into a DataFrame with float amounts.

    Columns: name, title, raw_title, year, agency, category, academic,
    match_rule, degraded, plus every field in VALUE_FIELDS.
    """
    rows = []
    for r in records:
        row = {
            "name": r.name,
            "title": r.title,
            "raw_title": r.raw_title,
            "year": r.year,
            "agency": r.agency,
            "category": r.category,
            "academic": r.academic,
            "match_rule": r.match_rule,
            "degraded": r.degraded,
        }
        for value_field in VALUE_FIELDS:
            row[value_field] = float(r.value(value_field))
        rows.append(row)
    columns = ["name", "title", "raw_title", "year", "agency", "category", "academic", "match_rule", "degraded"]
    return pd.DataFrame(rows, columns=columns + list(VALUE_FIELDS))


def _group_labels(df: pd.DataFrame, group_key: str) -> pd.Series:
    if group_key == "academic":
        return df["academic"].map({True: ACADEMIC_LABEL, False: NON_ACADEMIC_LABEL})
    return df["category"]


def compute_aggregates(
    records: Iterable[ClassifiedRecord],
    group_key: str = "category",
    value_field: str = "total_pay",
) -> List[CategoryAggregate]:
    """Every (year, group) aggregate, unfiltered, sorted by year and label."""
    if group_key not in GROUP_KEYS:
        raise ValueError(f"Unknown group_key '{group_key}'. Expected one of {GROUP_KEYS}.")
    if value_field not in VALUE_FIELDS:
        raise ValueError(f"Unknown value_field '{value_field}'. Expected one of {VALUE_FIELDS}.")

    df = records_frame(records)
    if df.empty:
        return []
    df["group"] = _group_labels(df, group_key)
    grouped = (
        df.groupby(["year", "group"], observed=True)[value_field]
        .agg(n="size", avg="mean")
        .reset_index()
        .sort_values(["year", "group"])
    )
    return [
        CategoryAggregate(
            category=str(row.group),
            year=int(row.year),
            count=int(row.n),
            mean=float(row.avg),
            value_field=value_field,
        )
        for row in grouped.itertuples(index=False)
    ]


def apply_filters(
    aggregates: Iterable[CategoryAggregate], filters: Optional[AggregateFilters] = None
) -> List[CategoryAggregate]:
    """Returns the aggregates that pass the filters, as a new list."""
    aggregates = list(aggregates)
    if filters is None or not filters.enabled:
        return aggregates
    kept = [a for a in aggregates if filters.accepts(a)]
    if len(kept) < len(aggregates):
        logger.debug(f"Filters {filters} suppressed {len(aggregates) - len(kept)} of {len(aggregates)} groups.")
    return kept


def aggregate(
    records: Iterable[ClassifiedRecord],
    group_key: str = "category",
    value_field: str = "total_pay",
    filters: Optional[AggregateFilters] = None,
) -> List[CategoryAggregate]:
    """
    Groups records by category (or academic flag) and computes count and mean.

    Args:
        records: Classified records, usually one year's worth.
        group_key: "category" or "academic".
        value_field: Compensation field to average, see VALUE_FIELDS.
        filters: Optional minimum count / minimum mean. Groups that fail are
            left out of the result; empty groups never appear as zero rows.

    Returns:
        A list of CategoryAggregate sorted by year, then label.
    """
    return apply_filters(compute_aggregates(records, group_key, value_field), filters)


def aggregates_frame(aggregates: Iterable[CategoryAggregate]) -> pd.DataFrame:
    rows = [
        {"year": a.year, "category": a.category, "count": a.count, "mean": a.mean, "value_field": a.value_field}
        for a in aggregates
    ]
    return pd.DataFrame(rows, columns=AGGREGATE_COLUMNS)
