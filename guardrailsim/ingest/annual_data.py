"""Annual data ingestion for the guardrails simulation.

Loads market-return and inflation datasets, merges them by year into
AnnualDatum records, and imports hand-edited annual tables from CSV.

Dataset files are JSON arrays of records:
- Investment datasets: [{"year": 1972, "return": 18.76}, ...]
- Inflation datasets: [{"year": 1972, "inflation": 3.41}, ...]

"""

from __future__ import annotations

import csv
import io
import json
import logging
import math
from pathlib import Path
from typing import TYPE_CHECKING, Any

from guardrailsim.simulation.engine import AnnualDatum, validate_annual_data

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

# Known column names for annual tables, mapped to canonical fields
_COLUMN_ALIASES: dict[str, list[str]] = {
    "year": ["year", "yr", "date"],
    "return": ["return", "return %", "return (%)", "return_percent", "returns"],
    "inflation": [
        "inflation",
        "inflation %",
        "inflation (%)",
        "inflation_percent",
        "cpi",
    ],
}


def load_dataset(path: str | Path) -> list[dict[str, Any]]:
    """Read a JSON dataset file.

    Args:
        path: Path to a JSON file containing an array of records.

    Returns:
        The list of records.

    Raises:
        ValueError: If the file does not contain a JSON array.

    """
    text = Path(path).read_text(encoding="utf-8")
    data = json.loads(text)
    if not isinstance(data, list):
        msg = f"Dataset {path} must contain a JSON array, got {type(data).__name__}"
        raise ValueError(msg)
    logger.debug("Loaded %d records from %s", len(data), path)
    return data


def combine_data(
    investment_data: Iterable[dict[str, Any]],
    inflation_data: Iterable[dict[str, Any]],
) -> list[AnnualDatum]:
    """Merge return and inflation records by year.

    Keeps the order of investment_data and drops years missing from
    inflation_data. For duplicated inflation years the last record wins.

    Args:
        investment_data: Records with "year" and "return" keys.
        inflation_data: Records with "year" and "inflation" keys.

    Returns:
        Merged AnnualDatum records.

    Raises:
        InvalidInputError: If a merged record holds a non-finite value.

    """
    inflation_by_year = {
        int(item["year"]): float(item["inflation"]) for item in inflation_data
    }
    combined: list[AnnualDatum] = []
    for item in investment_data:
        year = int(item["year"])
        if year in inflation_by_year:
            combined.append(
                AnnualDatum(
                    year=year,
                    return_percent=float(item["return"]),
                    inflation_percent=inflation_by_year[year],
                )
            )
    validate_annual_data(combined)
    return combined


def load_annual_data(
    investment_path: str | Path,
    inflation_path: str | Path,
) -> list[AnnualDatum]:
    """Load an investment and an inflation dataset and merge them.

    Args:
        investment_path: JSON file of annual returns.
        inflation_path: JSON file of annual inflation.

    Returns:
        Merged AnnualDatum records for the overlapping years.

    Raises:
        ValueError: If the datasets have no overlapping years.
        InvalidInputError: If a merged record holds a non-finite value.

    """
    combined = combine_data(load_dataset(investment_path), load_dataset(inflation_path))
    if not combined:
        msg = (
            f"No overlapping years between {investment_path} and {inflation_path}"
        )
        raise ValueError(msg)
    logger.info(
        "Combined %d overlapping years (%d-%d)",
        len(combined),
        combined[0].year,
        combined[-1].year,
    )
    return combined


def _map_columns(raw_headers: list[str]) -> dict[str, int]:
    """Map raw CSV headers to canonical field names.

    Raises:
        ValueError: If any of year, return, inflation cannot be found.

    """
    normalized = [h.strip().lower() for h in raw_headers]
    mapping: dict[str, int] = {}

    for canonical, aliases in _COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in normalized:
                mapping[canonical] = normalized.index(alias)
                break

    missing = set(_COLUMN_ALIASES) - set(mapping)
    if missing:
        msg = f"Required columns not found: {sorted(missing)}. Available: {raw_headers}"
        raise ValueError(msg)
    return mapping


def _parse_percent(value: str, field_name: str, year: str) -> float:
    """Parse a percent cell, tolerating a trailing "%" sign."""
    cleaned = value.strip().rstrip("%").strip()
    try:
        parsed = float(cleaned)
    except ValueError:
        msg = f"Invalid {field_name} value {value!r} for year {year}"
        raise ValueError(msg) from None
    if not math.isfinite(parsed):
        msg = f"Invalid {field_name} value {value!r} for year {year}"
        raise ValueError(msg)
    return parsed


def parse_annual_csv(
    file_path: str | Path | None = None,
    csv_content: str | None = None,
) -> list[AnnualDatum]:
    """Parse an annual return/inflation table from CSV.

    Provide either file_path or csv_content. Blank rows are skipped.

    Args:
        file_path: Path to the CSV file.
        csv_content: Raw CSV content as a string.

    Returns:
        AnnualDatum records in file order.

    Raises:
        ValueError: If no input is given, required columns are missing, or
            a row is short or holds a non-numeric value.

    """
    if file_path is None and csv_content is None:
        msg = "Provide either file_path or csv_content"
        raise ValueError(msg)

    if file_path is not None:
        text = Path(file_path).read_text(encoding="utf-8")
    else:
        text = csv_content  # type: ignore[assignment]

    reader = csv.reader(io.StringIO(text))
    try:
        raw_headers = next(reader)
    except StopIteration:
        msg = "CSV content is empty"
        raise ValueError(msg) from None
    col_map = _map_columns(raw_headers)
    expected_cells = max(col_map.values()) + 1

    records: list[AnnualDatum] = []
    for row in reader:
        if not any(cell.strip() for cell in row):
            continue
        if len(row) < expected_cells:
            label = row[col_map["year"]].strip() if col_map["year"] < len(row) else ""
            msg = (
                f"Row for year {label!r} (line {reader.line_num}) has {len(row)} "
                f"cells, expected at least {expected_cells}"
            )
            raise ValueError(msg)
        year_str = row[col_map["year"]].strip()
        try:
            year = int(year_str)
        except ValueError:
            msg = f"Invalid year value {year_str!r}"
            raise ValueError(msg) from None
        records.append(
            AnnualDatum(
                year=year,
                return_percent=_parse_percent(row[col_map["return"]], "return", year_str),
                inflation_percent=_parse_percent(
                    row[col_map["inflation"]], "inflation", year_str
                ),
            )
        )

    logger.info("Parsed %d annual records from CSV", len(records))
    return records
