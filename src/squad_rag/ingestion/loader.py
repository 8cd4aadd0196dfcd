"""SQuAD loader: fetch the nested JSON dataset and flatten it to rows.

SQuAD nests questions under paragraphs under articles::

    {"data": [{"title": ..., "paragraphs": [
        {"context": ..., "qas": [
            {"id": ..., "question": ..., "answers": [{"text": ...}, ...]}
        ]}
    ]}]}

:func:`load_squad` flattens this into one row per question with the
columns ``id``, ``title``, ``context``, ``question`` and ``answer``.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any

import pandas as pd
import requests

from squad_rag.errors import SourceReadError

logger = logging.getLogger(__name__)

SQUAD_COLUMNS = ["id", "title", "context", "question", "answer"]


def fetch_squad_json(
    url: str,
    *,
    request_timeout: int = 60,
    max_retries: int = 3,
) -> dict[str, Any]:
    """Download the SQuAD JSON document, retrying transient HTTP errors."""
    last_exc: Exception | None = None
    for attempt in range(1, max_retries + 1):
        try:
            resp = requests.get(url, timeout=request_timeout)
            resp.raise_for_status()
            break
        except requests.RequestException as exc:
            last_exc = exc
            if attempt < max_retries:
                wait = 2 ** attempt
                logger.warning("Retry %d/%d for %s (wait %ds): %s",
                               attempt, max_retries, url, wait, exc)
                time.sleep(wait)
    else:
        raise SourceReadError(
            f"Failed to fetch {url} after {max_retries} attempts"
        ) from last_exc

    try:
        return resp.json()
    except ValueError as exc:
        raise SourceReadError(f"Response from {url} is not valid JSON") from exc


def flatten_squad(payload: dict[str, Any]) -> pd.DataFrame:
    """Unwind articles → paragraphs → questions into a flat DataFrame.

    Only the first answer of each question is kept so question ids stay
    unique.  Questions without any answer get an empty ``answer``.
    """
    try:
        articles = payload["data"]
    except (KeyError, TypeError) as exc:
        raise SourceReadError("SQuAD payload has no top-level 'data' list") from exc

    if not articles:
        return pd.DataFrame(columns=SQUAD_COLUMNS)

    try:
        frame = pd.json_normalize(
            articles,
            record_path=["paragraphs", "qas"],
            meta=["title", ["paragraphs", "context"]],
        )
    except (KeyError, TypeError) as exc:
        raise SourceReadError(f"Malformed SQuAD payload: {exc}") from exc

    if frame.empty:
        return pd.DataFrame(columns=SQUAD_COLUMNS)

    frame = frame.rename(columns={"paragraphs.context": "context"})
    if "answers" in frame.columns:
        frame["answer"] = frame["answers"].map(_first_answer)
    else:
        frame["answer"] = ""
    missing = set(SQUAD_COLUMNS) - set(frame.columns)
    if missing:
        raise SourceReadError(f"SQuAD questions lack fields: {sorted(missing)}")
    return frame[SQUAD_COLUMNS].astype(str)


def _first_answer(answers: Any) -> str:
    # json_normalize fills NaN where a question has no "answers" key.
    if not isinstance(answers, list) or not answers:
        return ""
    first = answers[0]
    return str(first.get("text", "")) if isinstance(first, dict) else ""


def drop_duplicate_contexts(frame: pd.DataFrame) -> pd.DataFrame:
    """Keep the first row for each distinct ``context`` passage."""
    deduped = frame.drop_duplicates(subset="context", keep="first")
    return deduped.reset_index(drop=True)


def read_flat_csv(path: str | Path, *, deduplicate_contexts: bool = True) -> pd.DataFrame:
    """Read a dataset that was already flattened to CSV.

    Raises
    ------
    SourceReadError
        When the file is missing, unreadable or not valid CSV.
    """
    try:
        frame = pd.read_csv(path, dtype=str, keep_default_na=False)
    except (OSError, ValueError) as exc:
        raise SourceReadError(f"Cannot read CSV file {path}: {exc}") from exc
    logger.info("Read %d rows from %s", len(frame), path)

    if deduplicate_contexts and "context" in frame.columns:
        before = len(frame)
        frame = drop_duplicate_contexts(frame)
        logger.info("Dropped %d rows with duplicate contexts", before - len(frame))
    return frame


def load_squad(
    source: str | Path,
    *,
    deduplicate_contexts: bool = True,
    request_timeout: int = 60,
    max_retries: int = 3,
) -> pd.DataFrame:
    """Load SQuAD from a URL or a local JSON file and flatten it.

    Parameters
    ----------
    source:
        ``http(s)://`` URL or path to a local SQuAD-format JSON file.
    deduplicate_contexts:
        When true, only the first question per passage is kept, so every
        passage is embedded once.
    request_timeout:
        Per-request timeout in seconds (URL sources only).
    max_retries:
        Attempts for transient HTTP errors (URL sources only).

    Returns
    -------
    pandas.DataFrame
        Columns ``id``, ``title``, ``context``, ``question``, ``answer``.

    Raises
    ------
    SourceReadError
        When the dataset cannot be fetched, read or parsed.
    """
    source_str = str(source)
    if source_str.startswith(("http://", "https://")):
        payload = fetch_squad_json(
            source_str, request_timeout=request_timeout, max_retries=max_retries
        )
    else:
        try:
            with open(source_str, encoding="utf-8") as fh:
                payload = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise SourceReadError(f"Cannot read SQuAD file {source_str}: {exc}") from exc

    frame = flatten_squad(payload)
    logger.info("Flattened %d question rows from %s", len(frame), source_str)

    if deduplicate_contexts:
        before = len(frame)
        frame = drop_duplicate_contexts(frame)
        logger.info("Dropped %d rows with duplicate contexts", before - len(frame))

    return frame
