# -*- coding: utf-8 -*-
"""
Cross-year comparison tables.

`trend` stacks per-year aggregate sets into a long table and derives
year-over-year percent changes. A change is only defined against the
immediately preceding year: when that year, or the category within it, is
missing, the change is NaN and labelled "no prior data" rather than being
read as a jump from zero.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
from loguru import logger

from .aggregator import aggregates_frame, records_frame
from .constants import NO_PRIOR_DATA, ZERO_BASELINE
from .models import CategoryAggregate, ClassifiedRecord, TrendTable

CHANGE_COLUMNS = [
    "year", "category",
    "mean", "prior_mean", "mean_pct_change",
    "count", "prior_count", "count_pct_change",
    "status",
]


def pct_change(current: float, prior: Optional[float]) -> float:
    """(current - prior) / prior, or NaN when the prior value is missing or zero."""
    if prior is None or pd.isna(prior) or prior == 0:
        return np.nan
    return (current - prior) / prior


def _change_status(prior_present: bool, prior_mean: float, prior_count: float) -> str:
    if not prior_present:
        return NO_PRIOR_DATA
    if prior_mean == 0 or prior_count == 0:
        return ZERO_BASELINE
    return "ok"


def missing_years(years: Iterable[int]) -> List[int]:
    """Years absent from an otherwise consecutive range."""
    years = sorted(set(years))
    if not years:
        return []
    return [y for y in range(years[0], years[-1] + 1) if y not in years]


def trend(aggregate_sets: Sequence[Iterable[CategoryAggregate]]) -> TrendTable:
    """
    Combines per-year aggregate sets into cross-year tables.

    Args:
        aggregate_sets: One collection of CategoryAggregate per year, all
            computed over the same value field.

    Returns:
        TrendTable with `long` (year, category, mean, count) and `changes`
        (percent change of mean and count against year - 1).
    """
    frames = [aggregates_frame(s) for s in aggregate_sets]
    frames = [f for f in frames if not f.empty]
    if not frames:
        empty_long = pd.DataFrame(columns=["year", "category", "mean", "count"])
        return TrendTable(long=empty_long, changes=pd.DataFrame(columns=CHANGE_COLUMNS))

    long_df = (
        pd.concat(frames, ignore_index=True)[["year", "category", "mean", "count"]]
        .sort_values(["year", "category"])
        .reset_index(drop=True)
    )
    years = sorted(long_df["year"].unique().tolist())
    gaps = missing_years(years)
    for gap in gaps:
        logger.warning(f"No aggregates for {gap}; percent change into {gap + 1} is reported as '{NO_PRIOR_DATA}'.")

    lookup = {
        (year, category): (mean, count)
        for year, category, mean, count in long_df.itertuples(index=False, name=None)
    }
    rows = []
    for year, category, mean, count in long_df.itertuples(index=False, name=None):
        if year == years[0]:
            continue
        prior = lookup.get((year - 1, category))
        prior_mean, prior_count = prior if prior is not None else (np.nan, np.nan)
        rows.append({
            "year": year,
            "category": category,
            "mean": mean,
            "prior_mean": prior_mean,
            "mean_pct_change": pct_change(mean, prior_mean),
            "count": count,
            "prior_count": prior_count,
            "count_pct_change": pct_change(count, prior_count),
            "status": _change_status(prior is not None, prior_mean, prior_count),
        })
    changes = pd.DataFrame(rows, columns=CHANGE_COLUMNS)
    return TrendTable(long=long_df, changes=changes, years=[int(y) for y in years], missing_years=gaps)


def category_shares(aggregate_sets: Sequence[Iterable[CategoryAggregate]]) -> pd.DataFrame:
    """
    Each category's share of the year's headcount and of the year's summed
    value (mean * count), for stacked-share charts.
    """
    frames = [aggregates_frame(s) for s in aggregate_sets]
    frames = [f for f in frames if not f.empty]
    if not frames:
        return pd.DataFrame(columns=["year", "category", "count", "spend", "headcount_share", "spend_share"])
    df = pd.concat(frames, ignore_index=True)
    df["spend"] = df["mean"] * df["count"]
    totals = df.groupby("year")[["count", "spend"]].transform("sum")
    df["headcount_share"] = df["count"] / totals["count"]
    df["spend_share"] = df["spend"] / totals["spend"].replace(0, np.nan)
    return df[["year", "category", "count", "spend", "headcount_share", "spend_share"]].sort_values(
        ["year", "category"]
    ).reset_index(drop=True)


def spend_shares(records: Iterable[ClassifiedRecord]) -> pd.DataFrame:
    """
    Academic vs non-academic share of total spend per year.

    Total spend is the sum of every record's total pay for the year, whatever
    its category, so suppressed or unclassified groups still count. Shares are
    NaN for a year whose total spend is zero.
    """
    df = records_frame(records)
    columns = ["year", "academic_spend", "non_academic_spend", "total_spend", "academic_share", "non_academic_share"]
    if df.empty:
        return pd.DataFrame(columns=columns)
    df["academic_spend"] = df["total_pay"].where(df["academic"].astype(bool), 0.0)
    df["non_academic_spend"] = df["total_pay"].where(~df["academic"].astype(bool), 0.0)
    out = df.groupby("year").agg(
        academic_spend=("academic_spend", "sum"),
        non_academic_spend=("non_academic_spend", "sum"),
        total_spend=("total_pay", "sum"),
    ).reset_index()
    denominator = out["total_spend"].replace(0, np.nan)
    out["academic_share"] = out["academic_spend"] / denominator
    out["non_academic_share"] = out["non_academic_spend"] / denominator
    return out[columns]


def headcount_vs_enrollment(
    records: Iterable[ClassifiedRecord], enrollment: Optional[Mapping[int, int]] = None
) -> pd.DataFrame:
    """
    Headcount (all and academic) next to student enrollment per year, with
    year-over-year percent changes and students per employee.
    """
    df = records_frame(records)
    columns = [
        "year", "headcount", "academic_headcount", "enrollment", "students_per_employee",
        "students_per_academic", "headcount_pct_change", "enrollment_pct_change",
    ]
    if df.empty:
        return pd.DataFrame(columns=columns)
    out = df.groupby("year").agg(
        headcount=("name", "size"),
        academic_headcount=("academic", "sum"),
    ).reset_index()
    enrollment = {int(k): v for k, v in (enrollment or {}).items()}
    out["enrollment"] = out["year"].map(enrollment).astype(float)
    out["students_per_employee"] = out["enrollment"] / out["headcount"].replace(0, np.nan)
    out["students_per_academic"] = out["enrollment"] / out["academic_headcount"].replace(0, np.nan)

    by_year: Dict[int, pd.Series] = {int(row["year"]): row for _, row in out.iterrows()}
    headcount_changes, enrollment_changes = [], []
    for year in out["year"]:
        prior = by_year.get(int(year) - 1)
        current = by_year[int(year)]
        headcount_changes.append(pct_change(current["headcount"], None if prior is None else prior["headcount"]))
        enrollment_changes.append(pct_change(current["enrollment"], None if prior is None else prior["enrollment"]))
    out["headcount_pct_change"] = headcount_changes
    out["enrollment_pct_change"] = enrollment_changes
    return out[columns]
