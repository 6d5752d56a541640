# -*- coding: utf-8 -*-
"""
Row normalization for raw compensation records.

Turns one raw CSV row (any column spelling, any capitalization, names in
either "first last" or "last, first" order, titles with mixed delimiters)
into a canonical `CompensationRecord`. Malformed amounts never stop the
batch: they are recovered as zero and the field is remembered as degraded.
"""

from __future__ import annotations

import re
import unicodedata
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .constants import AMOUNT_FIELDS, COLUMN_ALIASES, NAME_SUFFIXES, UNREADABLE_TITLE
from .models import ZERO, CompensationRecord

# Runs of whitespace, hyphens, underscores and dashes collapse to one space.
_TITLE_DELIMITERS = re.compile(r"[\s\-_\u2010-\u2015]+")
_NAME_WHITESPACE = re.compile(r"\s+")
_AMOUNT_JUNK = re.compile(r"[$,\s]")

_ALIAS_LOOKUP = {
    alias: canonical
    for canonical, aliases in COLUMN_ALIASES.items()
    for alias in aliases
}

RawRow = Union[Mapping[str, Any], CompensationRecord]


def _column_key(column: str) -> str:
    return re.sub(r"[^a-z0-9]", "", str(column).lower())


def resolve_columns(raw_row: Mapping[str, Any]) -> Dict[str, Any]:
    """Renames the keys of a raw row to their canonical column names; unknown keys are dropped."""
    resolved: Dict[str, Any] = {}
    for column, value in raw_row.items():
        canonical = _ALIAS_LOOKUP.get(_column_key(column))
        if canonical and canonical not in resolved:
            resolved[canonical] = value
    return resolved


def canonical_title(raw_title: Any) -> str:
    """
    Canonical form of a job title: upper case, single spaces as the only delimiter.

    "PROF-HCOMP", "prof hcomp" and "PROF  HCOMP" all become "PROF HCOMP".
    Titles that cannot be read as text become UNREADABLE_TITLE.
    """
    if raw_title is None:
        return ""
    if isinstance(raw_title, bytes):
        try:
            raw_title = raw_title.decode("utf-8")
        except UnicodeDecodeError:
            return UNREADABLE_TITLE
    text = str(raw_title)
    if text == UNREADABLE_TITLE:
        return text
    if "\ufffd" in text or any(unicodedata.category(ch) == "Cc" and not ch.isspace() for ch in text):
        return UNREADABLE_TITLE
    return _TITLE_DELIMITERS.sub(" ", text).strip().upper()


def canonical_name(raw_name: Any) -> str:
    """
    Canonical form of an employee name: "LAST, FIRST MIDDLE", upper case.

    A name without a comma is read as "first ... last"; generational suffixes
    (JR, III, ...) stay with the surname. A comma followed only by a suffix
    ("John Smith, Jr.") is not a "LAST, FIRST" separator.
    """
    if raw_name is None:
        return ""
    text = _NAME_WHITESPACE.sub(" ", str(raw_name)).strip().upper()
    if not text:
        return ""
    if "," in text:
        last, _, first = text.partition(",")
        last, first = last.strip(), first.strip()
        suffix_only = bool(first) and " " in last and all(t in NAME_SUFFIXES for t in first.split(" "))
        if not suffix_only:
            return f"{last}, {first}" if first else last
        text = f"{last} {first}"

    tokens = text.split(" ")
    if len(tokens) == 1:
        return tokens[0]
    surname_len = 2 if tokens[-1] in NAME_SUFFIXES and len(tokens) > 2 else 1
    last = " ".join(tokens[-surname_len:])
    first = " ".join(tokens[:-surname_len])
    return f"{last}, {first}"


def parse_amount(raw_value: Any) -> Tuple[Decimal, bool]:
    """
    Parses a pay amount. Returns (amount, ok).

    Blank, missing, unparseable and negative values come back as (0, False).
    """
    if raw_value is None:
        return ZERO, False
    if isinstance(raw_value, Decimal):
        value = raw_value
    elif isinstance(raw_value, (int, float)) and not isinstance(raw_value, bool):
        if raw_value != raw_value:  # NaN
            return ZERO, False
        value = Decimal(str(raw_value))
    else:
        text = _AMOUNT_JUNK.sub("", str(raw_value))
        if not text:
            return ZERO, False
        try:
            value = Decimal(text)
        except InvalidOperation:
            return ZERO, False
    if not value.is_finite() or value < 0:
        return ZERO, False
    return value, True


def _parse_year(raw_year: Any) -> int:
    text = str(raw_year).strip()
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        raise ValueError(f"Cannot parse year from {raw_year!r}") from None


def normalize(raw_row: RawRow, year: Optional[int] = None, agency: Optional[str] = None) -> CompensationRecord:
    """
    Normalizes one raw row into a CompensationRecord.

    Args:
        raw_row: Mapping of raw CSV values (column spellings resolved through
            COLUMN_ALIASES) or an already normalized record.
        year: Year of the source file; overrides the row's own Year column.
        agency: Agency to use when the row has none.

    Returns:
        A canonical, immutable record. Amounts that were blank or malformed
        are zero and listed in `degraded_fields`.
    """
    if isinstance(raw_row, CompensationRecord):
        return _renormalize(raw_row)

    row = resolve_columns(raw_row)
    if year is None:
        if "Year" not in row:
            raise ValueError("Row has no Year column and no year was given")
        year = _parse_year(row["Year"])

    amounts: Dict[str, Decimal] = {}
    degraded = set()
    for column, attribute in AMOUNT_FIELDS.items():
        value, ok = parse_amount(row.get(column))
        amounts[attribute] = value
        if not ok:
            degraded.add(attribute)

    raw_title = row.get("Title")
    title = canonical_title(raw_title)
    if isinstance(raw_title, bytes):
        raw_title = raw_title.decode("utf-8", errors="replace")

    row_agency = str(row.get("Agency") or "").strip()
    return CompensationRecord(
        name=canonical_name(row.get("Name")),
        title=title,
        year=int(year),
        agency=row_agency or (agency or ""),
        raw_title="" if raw_title is None else str(raw_title),
        degraded_fields=frozenset(degraded),
        **amounts,
    )


def _renormalize(record: CompensationRecord) -> CompensationRecord:
    amounts = {}
    degraded = set(record.degraded_fields)
    for attribute in AMOUNT_FIELDS.values():
        value, ok = parse_amount(record.value(attribute))
        amounts[attribute] = value
        if not ok:
            degraded.add(attribute)
    return CompensationRecord(
        name=canonical_name(record.name),
        title=canonical_title(record.title),
        year=record.year,
        agency=record.agency.strip(),
        raw_title=record.raw_title,
        degraded_fields=frozenset(degraded),
        **amounts,
    )
