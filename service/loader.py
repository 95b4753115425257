"""Load bars and quotes from local files.

Supported bar formats:
- CSV with a header row: date,open,high,low,close,volume[,amount]
- JSON: a list of bar objects, or an object with a "klines" list
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path

import orjson

from core.models import Bar, Quote, validate_bars

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("date", "open", "high", "low", "close")


def _parse_csv(text: str) -> list[Bar]:
    reader = csv.DictReader(text.splitlines())
    missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
    if missing:
        raise ValueError(f"CSV header is missing columns: {', '.join(missing)}")

    bars = []
    for row in reader:
        if not row.get("date"):
            continue
        bars.append(
            Bar(
                date=row["date"].strip(),
                open=row["open"],
                high=row["high"],
                low=row["low"],
                close=row["close"],
                volume=row.get("volume") or 0,
                amount=row.get("amount") or 0,
            )
        )
    return bars


def _parse_json(data: bytes) -> list[Bar]:
    payload = orjson.loads(data)
    if isinstance(payload, dict):
        payload = payload.get("klines", [])
    if not isinstance(payload, list):
        raise ValueError("JSON bars must be a list or an object with a 'klines' list")
    return [Bar.model_validate(item) for item in payload]


def load_bars(path: str | Path) -> list[Bar]:
    """
    Load and validate bars from a CSV or JSON file.

    Raises:
        ValueError: Unknown extension or malformed content
        InvalidBarsError: Empty or unordered bars
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".csv":
        bars = _parse_csv(path.read_text(encoding="utf-8"))
    elif suffix == ".json":
        bars = _parse_json(path.read_bytes())
    else:
        raise ValueError(f"Unsupported bar file format: {path.suffix or path.name}")

    validate_bars(bars)
    logger.debug("Loaded %d bars from %s (%s -> %s)", len(bars), path, bars[0].date, bars[-1].date)
    return bars


def load_quote(path: str | Path) -> Quote:
    """Load a quote from a JSON object file."""
    return Quote.model_validate(orjson.loads(Path(path).read_bytes()))
