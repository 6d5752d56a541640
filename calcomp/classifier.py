# -*- coding: utf-8 -*-
"""
Title classification against the curated title-mapping table.

Compensation files and the title-code reference table spell the same job
differently ("ACT PROF-AY-B/E/E" vs "PROF-AY"), and no single rewrite rule
reconciles them. Matching therefore walks an ordered strategy table:

    1. exact              canonical title as is
    2. rank_modifier      drop ACT/INTERIM/VISITING/... and trailing grade levels
    3. department_suffix  drop trailing AY/FY/HCOMP/B/E/E/... one token at a time

The first hit wins. Titles that survive all passes are classified as
"Unclassified" and listed by `unmatched_titles` so residual mismatches are
visible in the report instead of disappearing.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import pandas as pd
from loguru import logger

from .constants import (
    DEFAULT_DEPARTMENT_SUFFIXES,
    DEFAULT_GRADE_LEVELS,
    DEFAULT_RANK_MODIFIERS,
    RULE_DEPARTMENT_SUFFIX,
    RULE_EXACT,
    RULE_RANK_MODIFIER,
    RULE_UNMATCHED,
    RULE_UNREADABLE,
    UNCLASSIFIED_CATEGORY,
    UNREADABLE_CATEGORY,
)
from .models import ClassifiedRecord, CompensationRecord, TitleMapping
from .normalizer import canonical_title


class MappingConflictError(ValueError):
    """Raised when the mapping table lists one canonical title with two different classifications."""


@dataclass(frozen=True)
class FallbackRules:
    """Token sets used by the fallback passes, all in canonical (upper case) form."""
    rank_modifiers: frozenset
    grade_levels: frozenset
    department_suffixes: Tuple[Tuple[str, ...], ...]

    @classmethod
    def from_lists(
        cls,
        rank_modifiers: Iterable[str] = DEFAULT_RANK_MODIFIERS,
        department_suffixes: Iterable[str] = DEFAULT_DEPARTMENT_SUFFIXES,
        grade_levels: Iterable[str] = DEFAULT_GRADE_LEVELS,
    ) -> "FallbackRules":
        suffixes = {tuple(canonical_title(s).split(" ")) for s in department_suffixes if canonical_title(s)}
        return cls(
            rank_modifiers=frozenset(canonical_title(m) for m in rank_modifiers if canonical_title(m)),
            grade_levels=frozenset(canonical_title(g) for g in grade_levels if canonical_title(g)),
            # Longest suffix first so "AY B/E/E" is preferred over "B/E/E".
            department_suffixes=tuple(sorted(suffixes, key=lambda s: (-len(s), s))),
        )


DEFAULT_RULES = FallbackRules.from_lists()


class MappingTable(Mapping):
    """Read-only lookup from canonical title to TitleMapping."""

    def __init__(self, entries: Iterable[TitleMapping] = ()):
        table: Dict[str, TitleMapping] = {}
        for entry in entries:
            key = canonical_title(entry.title)
            if not key:
                continue
            entry = TitleMapping(title=key, category=entry.category.strip(), academic=bool(entry.academic))
            existing = table.get(key)
            if existing is None:
                table[key] = entry
            elif (existing.category, existing.academic) != (entry.category, entry.academic):
                raise MappingConflictError(
                    f"Title '{key}' is mapped to both ({existing.category}, {existing.academic}) "
                    f"and ({entry.category}, {entry.academic})"
                )
            else:
                logger.debug(f"Duplicate mapping entry for '{key}' merged.")
        self._table = table

    @classmethod
    def from_dict(cls, data: Dict[str, Tuple[str, bool]]) -> "MappingTable":
        return cls(TitleMapping(title, category, academic) for title, (category, academic) in data.items())

    def __getitem__(self, title: str) -> TitleMapping:
        return self._table[title]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    @property
    def categories(self) -> List[str]:
        return sorted({entry.category for entry in self._table.values()})


# ---------------------------------------------------------------------------
# Fallback passes
# ---------------------------------------------------------------------------

def strip_rank_modifiers(title: str, rules: FallbackRules = DEFAULT_RULES) -> List[str]:
    """
    Drops rank modifiers at either end and trailing grade levels.

    Leading modifiers come off first, then trailing tokens one at a time;
    every intermediate title is returned, so "ACT DEAN II" yields "DEAN II"
    before "DEAN".
    """
    tokens = title.split(" ") if title else []
    candidates = []
    leading = 0
    while len(tokens) - leading > 1 and tokens[leading] in rules.rank_modifiers:
        leading += 1
    tokens = tokens[leading:]
    if leading:
        candidates.append(" ".join(tokens))
    while len(tokens) > 1 and (tokens[-1] in rules.rank_modifiers or tokens[-1] in rules.grade_levels):
        tokens = tokens[:-1]
        candidates.append(" ".join(tokens))
    return candidates


def strip_department_suffixes(title: str, rules: FallbackRules = DEFAULT_RULES) -> List[str]:
    """Drops trailing department / pay-scale suffixes one at a time; returns every intermediate title."""
    tokens = title.split(" ") if title else []
    candidates = []
    stripped = True
    while stripped:
        stripped = False
        for suffix in rules.department_suffixes:
            n = len(suffix)
            if len(tokens) > n and tuple(tokens[-n:]) == suffix:
                tokens = tokens[:-n]
                candidates.append(" ".join(tokens))
                stripped = True
                break
    return candidates


# Applied in this order; each pass starts from the last candidate of the pass before.
FALLBACK_PASSES: Sequence[Tuple[str, Callable[[str, FallbackRules], List[str]]]] = (
    (RULE_RANK_MODIFIER, strip_rank_modifiers),
    (RULE_DEPARTMENT_SUFFIX, strip_department_suffixes),
)


def match_title(
    title: str, mapping: MappingTable, rules: FallbackRules = DEFAULT_RULES
) -> Tuple[Optional[TitleMapping], str]:
    """
    Finds the mapping entry for a canonical title.

    Returns:
        (entry, rule) where rule names the pass that matched, or
        (None, "unmatched").
    """
    key = canonical_title(title)
    if key in mapping:
        return mapping[key], RULE_EXACT

    current = key
    for rule_name, strip in FALLBACK_PASSES:
        candidates = strip(current, rules)
        for candidate in candidates:
            if candidate in mapping:
                logger.debug(f"'{key}' matched '{candidate}' via {rule_name}")
                return mapping[candidate], rule_name
        if candidates:
            current = candidates[-1]
    return None, RULE_UNMATCHED


def classify(
    record: CompensationRecord, mapping: MappingTable, rules: FallbackRules = DEFAULT_RULES
) -> ClassifiedRecord:
    """
    Attaches (category, academic) to a record.

    Unreadable titles are not looked up; unmatched titles fall back to the
    "Unclassified" category. Neither ever raises.
    """
    if not record.title_readable:
        return record.classified(UNREADABLE_CATEGORY, False, RULE_UNREADABLE)
    entry, rule = match_title(record.title, mapping, rules)
    if entry is None:
        return record.classified(UNCLASSIFIED_CATEGORY, False, RULE_UNMATCHED)
    return record.classified(entry.category, entry.academic, rule)


def classify_all(
    records: Iterable[CompensationRecord], mapping: MappingTable, rules: FallbackRules = DEFAULT_RULES
) -> List[ClassifiedRecord]:
    """Classifies every record, resolving each distinct title only once."""
    resolved: Dict[str, Tuple[Optional[TitleMapping], str]] = {}
    classified = []
    for record in records:
        if not record.title_readable:
            classified.append(record.classified(UNREADABLE_CATEGORY, False, RULE_UNREADABLE))
            continue
        if record.title not in resolved:
            resolved[record.title] = match_title(record.title, mapping, rules)
        entry, rule = resolved[record.title]
        if entry is None:
            classified.append(record.classified(UNCLASSIFIED_CATEGORY, False, RULE_UNMATCHED))
        else:
            classified.append(record.classified(entry.category, entry.academic, rule))

    unmatched = sum(1 for entry, _ in resolved.values() if entry is None)
    if unmatched:
        logger.warning(f"{unmatched} of {len(resolved)} distinct titles matched no mapping entry.")
    return classified


def match_rule_counts(classified: Iterable[ClassifiedRecord]) -> pd.DataFrame:
    """Number of records resolved by each pass, per year."""
    df = pd.DataFrame([{"year": r.year, "match_rule": r.match_rule} for r in classified])
    if df.empty:
        return pd.DataFrame(columns=["year", "match_rule", "n"])
    return df.groupby(["year", "match_rule"]).size().reset_index(name="n")


def unmatched_titles(classified: Iterable[ClassifiedRecord]) -> pd.DataFrame:
    """
    Residual mismatch report: every title that ended up Unclassified,
    with its headcount and the years it appears in, most frequent first.
    """
    rows = [
        {"title": r.title, "raw_title": r.raw_title, "year": r.year}
        for r in classified
        if r.match_rule == RULE_UNMATCHED
    ]
    if not rows:
        return pd.DataFrame(columns=["title", "n", "years", "example_raw_title"])
    df = pd.DataFrame(rows)
    report = (
        df.groupby("title")
        .agg(
            n=("year", "size"),
            years=("year", lambda s: ", ".join(str(y) for y in sorted(s.unique()))),
            example_raw_title=("raw_title", "first"),
        )
        .reset_index()
        .sort_values(["n", "title"], ascending=[False, True])
        .reset_index(drop=True)
    )
    return report
