# -*- coding: utf-8 -*-
"""
Readers for the two external inputs: per-year compensation CSVs and the
curated title-mapping CSV.

Both are read as plain strings so that every cleaning decision is made by the
normalizer, not by pandas' type inference.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pandas as pd
from loguru import logger
from tqdm import tqdm

from .classifier import MappingTable
from .constants import ACADEMIC_FALSE, ACADEMIC_TRUE, REQUIRED_COLUMNS
from .models import CompensationRecord, TitleMapping
from .normalizer import normalize, resolve_columns


def read_raw_csv(
    path: str | Path,
    sep: Optional[str] = ",",
    encoding: str = "utf-8",
    encoding_errors: str = "replace",
) -> pd.DataFrame:
    """
    Reads a CSV with every column as text and blanks kept as empty strings.

    `sep=None` lets pandas sniff the delimiter (python engine).
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Input file not found: {path}")
    df = pd.read_csv(
        path,
        sep=sep,
        engine="python" if sep is None else "c",
        dtype=str,
        keep_default_na=False,
        encoding=encoding,
        encoding_errors=encoding_errors,
    )
    df.columns = [str(c).strip() for c in df.columns]
    df.attrs["name"] = str(path)
    return df


def check_columns(df: pd.DataFrame, source: str = "") -> None:
    """Raises ValueError when a required column (under any accepted spelling) is missing."""
    resolved = resolve_columns({column: None for column in df.columns})
    missing = [c for c in REQUIRED_COLUMNS if c not in resolved]
    if missing:
        raise ValueError(f"Input data {source} missing required columns: {missing}")


def normalize_frame(df: pd.DataFrame, year: int, agency: str = "", show_progress: bool = False) -> List[CompensationRecord]:
    """Normalizes every row of a raw DataFrame."""
    check_columns(df, df.attrs.get("name", ""))
    rows = df.to_dict(orient="records")
    if show_progress:
        rows = tqdm(rows, desc=f"Normalizing {year}", leave=False)
    return [normalize(row, year=year, agency=agency or None) for row in rows]


def load_year(
    path: str | Path,
    year: int,
    agency: str = "",
    sep: Optional[str] = ",",
    encoding: str = "utf-8",
    encoding_errors: str = "replace",
) -> List[CompensationRecord]:
    """Reads and normalizes one year's compensation file."""
    df = read_raw_csv(path, sep=sep, encoding=encoding, encoding_errors=encoding_errors)
    records = normalize_frame(df, year, agency)
    if agency:
        records = [r for r in records if not r.agency or r.agency.lower() == agency.lower()]
    degraded = sum(1 for r in records if r.degraded)
    logger.info(f"{year}: {len(records):,} rows loaded from {path} ({degraded:,} degraded).")
    return records


def load_years(input_files: Dict[int, Path], **kwargs) -> Dict[int, List[CompensationRecord]]:
    """Loads every configured year, keyed by year in ascending order."""
    return {year: load_year(input_files[year], year, **kwargs) for year in sorted(input_files)}


def parse_academic(value: object) -> bool:
    text = str(value).strip().lower()
    if text in ACADEMIC_TRUE:
        return True
    if text in ACADEMIC_FALSE:
        return False
    raise ValueError(f"Cannot read academic flag {value!r}")


def mapping_entries(df: pd.DataFrame) -> Iterable[TitleMapping]:
    columns = {c.strip().lower(): c for c in df.columns}
    for required in ("title", "category", "academic"):
        if required not in columns:
            raise ValueError(f"Title mapping is missing the '{required}' column")
    for row in df.to_dict(orient="records"):
        title = row[columns["title"]]
        if not str(title).strip():
            continue
        yield TitleMapping(
            title=str(title),
            category=str(row[columns["category"]]).strip(),
            academic=parse_academic(row[columns["academic"]]),
        )


def load_mapping(path: str | Path, encoding: str = "utf-8") -> MappingTable:
    """Reads the curated {Title, Category, Academic} table."""
    df = read_raw_csv(path, encoding=encoding, encoding_errors="strict")
    table = MappingTable(mapping_entries(df))
    logger.info(f"Title mapping: {len(table):,} canonical titles in {len(table.categories)} categories from {path}.")
    return table
