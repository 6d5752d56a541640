# -*- coding: utf-8 -*-
"""
Data-quality bookkeeping.

Nothing in the pipeline aborts on messy rows. Instead every recovery is
labelled with an IssueKind and counted here, so the report states exactly how
much of each year's data was patched, left unclassified or skipped.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

import pandas as pd
from loguru import logger

from .constants import RULE_UNMATCHED
from .models import ClassifiedRecord, CompensationRecord, TrendTable


class IssueKind(str, Enum):
    MALFORMED_ROW = "malformed_row"
    UNREADABLE_TITLE = "unreadable_title"
    UNCLASSIFIABLE_TITLE = "unclassifiable_title"
    MISSING_YEAR_DATA = "missing_year_data"
    ORDERING_VIOLATION = "ordering_violation"


ISSUE_COLUMNS = ["year", "issue", "n", "detail"]


def record_issues(record: CompensationRecord) -> list:
    """IssueKinds raised by a single record."""
    issues = []
    if record.degraded:
        issues.append(IssueKind.MALFORMED_ROW)
    if not record.title_readable:
        issues.append(IssueKind.UNREADABLE_TITLE)
    if isinstance(record, ClassifiedRecord) and record.match_rule == RULE_UNMATCHED:
        issues.append(IssueKind.UNCLASSIFIABLE_TITLE)
    if record.ordering_violations():
        issues.append(IssueKind.ORDERING_VIOLATION)
    return issues


def degraded_field_counts(records: Iterable[CompensationRecord]) -> pd.DataFrame:
    """How often each amount field was recovered as zero, per year."""
    rows = [
        {"year": r.year, "field": field_name}
        for r in records
        for field_name in sorted(r.degraded_fields)
    ]
    if not rows:
        return pd.DataFrame(columns=["year", "field", "n"])
    return pd.DataFrame(rows).groupby(["year", "field"]).size().reset_index(name="n")


def summarize_issues(
    records: Iterable[CompensationRecord], trend_table: Optional[TrendTable] = None
) -> pd.DataFrame:
    """
    Counts every recovered issue per year.

    Args:
        records: Normalized or classified records.
        trend_table: When given, each year missing from the trend range is
            reported as MISSING_YEAR_DATA.
    """
    rows = []
    for record in records:
        for issue in record_issues(record):
            rows.append({"year": record.year, "issue": issue.value})
    df = pd.DataFrame(rows, columns=["year", "issue"])
    summary = df.groupby(["year", "issue"]).size().reset_index(name="n")
    summary["detail"] = ""

    if trend_table is not None and trend_table.missing_years:
        gaps = pd.DataFrame([
            {
                "year": year,
                "issue": IssueKind.MISSING_YEAR_DATA.value,
                "n": 1,
                "detail": f"percent change into {year + 1} omitted",
            }
            for year in trend_table.missing_years
        ])
        summary = pd.concat([summary, gaps], ignore_index=True)

    summary = summary.sort_values(["year", "issue"]).reset_index(drop=True)
    for row in summary.itertuples(index=False):
        logger.warning(f"{row.year}: {row.n} x {row.issue} {row.detail}".rstrip())
    return summary[ISSUE_COLUMNS]
