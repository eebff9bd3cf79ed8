"""AdsIntel — CSV/TSV decoding for uploaded spreadsheets."""

import io
from typing import Dict, List

import pandas as pd

from app.core.logging import get_logger

logger = get_logger("normalizer.tabular")

DELIMITERS = ("\t", ";", ",")


def decode_bytes(content: bytes) -> str:
    """Decode an upload. Meta lead exports are UTF-16; everything else UTF-8."""
    if content.startswith((b"\xff\xfe", b"\xfe\xff")):
        return content.decode("utf-16")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def detect_delimiter(text: str) -> str:
    """Pick the delimiter that occurs most often in the header line."""
    header = text.splitlines()[0] if text else ""
    counts = {d: header.count(d) for d in DELIMITERS}
    best = max(counts, key=lambda d: counts[d])
    return best if counts[best] > 0 else ","


def read_tabular(content: bytes) -> List[Dict[str, str]]:
    """Read a header-row CSV/TSV into a list of string-valued dicts."""
    text = decode_bytes(content)
    if not text.strip():
        return []

    delimiter = detect_delimiter(text)
    header = pd.read_csv(io.StringIO(text), sep=delimiter, nrows=0, dtype=str)
    n_cols = len(header.columns)

    def truncate(fields: List[str]) -> List[str]:
        # Extra trailing cells are dropped; the row itself is kept
        logger.warning(f"Row with {len(fields)} fields truncated to {n_cols}")
        return fields[:n_cols]

    df = pd.read_csv(
        io.StringIO(text),
        sep=delimiter,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        engine="python",
        index_col=False,
        on_bad_lines=truncate,
    )
    df.columns = [str(c).strip() for c in df.columns]
    rows = df.to_dict(orient="records")
    logger.info(
        f"Read {len(rows)} rows with {len(df.columns)} columns (delimiter={delimiter!r})"
    )
    return rows
