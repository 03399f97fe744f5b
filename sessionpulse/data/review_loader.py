"""
Review Loader
=============

Reads raw review records produced by the collection stage and turns them
into Review objects. Malformed records are skipped and logged; they never
abort the load.

Supported inputs:
    - .json  : a JSON array of review objects (or {"reviews": [...]})
    - .jsonl : one JSON object per line
    - .csv   : header row; empty cells are treated as absent fields
"""

import csv
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

from ..errors import MalformedRecordError
from ..reviews.review_models import Review

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Parsed reviews plus what was skipped."""
    reviews: List[Review] = field(default_factory=list)
    skipped: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.reviews) + len(self.skipped)


def parse_records(records: Iterable[Any]) -> LoadResult:
    """
    Validate raw records. Skips (and logs) every MalformedRecordError.
    """
    result = LoadResult()
    for index, record in enumerate(records):
        try:
            result.reviews.append(Review.from_record(record))
        except MalformedRecordError as e:
            logger.warning(f"Skipping malformed review #{index}: {e}")
            result.skipped.append({
                "index": index,
                "error": str(e),
                "review_id": e.review_id,
            })
    if result.skipped:
        logger.info(f"Loaded {len(result.reviews)} reviews, skipped {len(result.skipped)} malformed")
    return result


def _read_json(path: Path) -> List[Any]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict) and isinstance(data.get("reviews"), list):
        return data["reviews"]
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON array of reviews")
    return data


def _read_jsonl(path: Path) -> List[Any]:
    records: List[Any] = []
    with open(path, encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as e:
                # Kept as a non-object so parse_records skips and logs it
                logger.warning(f"{path.name}:{line_no}: invalid JSON ({e})")
                records.append(None)
    return records


def _read_csv(path: Path) -> List[Dict[str, Any]]:
    with open(path, encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        return [
            {k: v for k, v in row.items() if k and (v != "" or k == "review_text")}
            for row in reader
        ]


def load_reviews(path: Union[str, Path]) -> LoadResult:
    """
    Load and validate reviews from a file.

    Raises:
        FileNotFoundError: input file missing
        ValueError: file is not in a supported shape
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".jsonl":
        records = _read_jsonl(path)
    elif suffix == ".csv":
        records = _read_csv(path)
    else:
        records = _read_json(path)

    logger.info(f"Read {len(records)} raw review records from {path}")
    return parse_records(records)
