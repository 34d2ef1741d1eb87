"""Local spreadsheet files as row sources.

Reads .csv, .tsv and .xlsx/.xlsm files into raw row dicts. Workbooks
keep their sheet names so the normalizer can use them as category
hints ("TV (English)", "Films (Non-English)", ...). A workbook that
openpyxl can't open falls back to a .csv with the same stem.
"""

from __future__ import annotations

import csv
import logging
import zipfile
from pathlib import Path
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

logger = logging.getLogger(__name__)

WORKBOOK_SUFFIXES = (".xlsx", ".xlsm")


def _read_delimited(path: Path, delimiter: str) -> list[dict[str, Any]]:
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f, delimiter=delimiter, skipinitialspace=True)
        rows = []
        for row in reader:
            row.pop(None, None)
            cleaned = {
                key.strip(): value.strip() if isinstance(value, str) else value
                for key, value in row.items()
                if key is not None
            }
            if any(cleaned.values()):
                rows.append(cleaned)
        return rows


def _sheet_rows(worksheet) -> list[dict[str, Any]]:
    rows_iter = worksheet.iter_rows(values_only=True)
    header = next(rows_iter, None)
    if header is None:
        return []
    columns = [str(cell).strip() if cell is not None else "" for cell in header]

    rows = []
    for values in rows_iter:
        if values is None or all(value is None for value in values):
            continue
        rows.append(
            {
                column: value
                for column, value in zip(columns, values)
                if column
            }
        )
    return rows


def load_workbook_sheets(path: Path) -> dict[str, list[dict[str, Any]]]:
    """Read every sheet of a workbook as {sheet name: rows}.

    The first row of each sheet is the header. Date cells come back as
    datetime objects, which the date parser accepts.

    Raises:
        InvalidFileException, zipfile.BadZipFile, OSError, KeyError:
            If the workbook can't be opened.
    """
    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        return {
            worksheet.title: _sheet_rows(worksheet)
            for worksheet in workbook.worksheets
        }
    finally:
        workbook.close()


def load_sheets(path: Path) -> dict[str, list[dict[str, Any]]]:
    """Read a spreadsheet file as {sheet name: rows}.

    Delimited files have a single sheet named after the file stem.

    Raises:
        ValueError: For unsupported file extensions.
        OSError: If the file (or its CSV fallback) can't be read.
    """
    suffix = path.suffix.lower()
    if suffix in WORKBOOK_SUFFIXES:
        try:
            return load_workbook_sheets(path)
        except (InvalidFileException, zipfile.BadZipFile, KeyError) as exc:
            fallback = path.with_suffix(".csv")
            logger.warning(
                "Could not open workbook %s (%s), trying %s", path, exc, fallback
            )
            return {fallback.stem: _read_delimited(fallback, ",")}
    if suffix == ".csv":
        return {path.stem: _read_delimited(path, ",")}
    if suffix == ".tsv":
        return {path.stem: _read_delimited(path, "\t")}
    raise ValueError(f"Unsupported file extension: {suffix}")


def load_rows(path: Path) -> list[dict[str, Any]]:
    """Read the first sheet of a spreadsheet file as raw rows."""
    sheets = load_sheets(path)
    return next(iter(sheets.values()), [])
