"""AdsIntel — Locale-Aware Value Parsing.

Spreadsheet data is noisy. Every helper here degrades to a documented
default instead of raising, except parse_date in strict mode.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from app.config import settings
from app.core.errors import DateParseError
from app.core.metric_registry import HEADER_ALIASES

FALLBACK_NAME = "Sem Nome"
FALLBACK_CAMPAIGN = "Sem Campanha"

_SYMBOLS = re.compile(r"[R$\s%]")
_LEADING_FLOAT = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_WHITESPACE = re.compile(r"\s+")

_ISO_DATE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_BR_DATE_SLASH = re.compile(r"(\d{2})/(\d{2})/(\d{4})")
_BR_DATE_DASH = re.compile(r"(\d{2})-(\d{2})-(\d{4})")
_BR_TIMESTAMP = re.compile(
    r"^(\d{2})/(\d{2})/(\d{4})(?:[ T](\d{2}):(\d{2})(?::(\d{2}))?)?$"
)


def normalize_header(header: str) -> str:
    """Map a raw column header to its canonical field name.

    Unknown headers come back in normalized form and are simply ignored
    by the row normalizers.
    """
    normalized = _WHITESPACE.sub("_", str(header).strip().lower())
    return HEADER_ALIASES.get(normalized, normalized)


def parse_number(value: Any) -> float:
    """Parse a pt-BR formatted number.

    "R$ 1.234,56" -> 1234.56, "12%" -> 12, garbage -> 0. Dots are always
    thousands separators; the first comma is the decimal point.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return value
    if not value:
        return 0
    cleaned = _SYMBOLS.sub("", str(value)).replace(".", "").replace(",", ".", 1)
    match = _LEADING_FLOAT.match(cleaned)
    if not match:
        return 0
    try:
        return float(match.group(0))
    except ValueError:
        return 0


def parse_int(value: Any) -> int:
    """parse_number clamped to a non-negative integer count."""
    return max(int(parse_number(value)), 0)


def today_iso() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def parse_date(value: Any, strict: Optional[bool] = None) -> str:
    """Return a YYYY-MM-DD string.

    Accepts YYYY-MM-DD, DD/MM/YYYY and DD-MM-YYYY. Anything else becomes
    today's date, or raises DateParseError when strict parsing is on.
    """
    strict = settings.strict_date_parsing if strict is None else strict
    text = str(value).strip() if value is not None else ""

    if text:
        iso = _ISO_DATE.search(text)
        if iso:
            return iso.group(0)
        for pattern in (_BR_DATE_SLASH, _BR_DATE_DASH):
            match = pattern.search(text)
            if match:
                day, month, year = match.groups()
                return f"{year}-{month}-{day}"

    if strict:
        raise DateParseError(text)
    return today_iso()


def parse_timestamp(value: Any) -> datetime:
    """Parse a lead registration timestamp; unparseable values become now."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    text = str(value).strip() if value else ""
    if text:
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
        except ValueError:
            pass
        # Graph API style: 2024-01-05T10:00:00+0000
        try:
            return datetime.strptime(text, "%Y-%m-%dT%H:%M:%S%z")
        except ValueError:
            pass
        match = _BR_TIMESTAMP.match(text)
        if match:
            day, month, year, hour, minute, second = match.groups()
            try:
                return datetime(
                    int(year),
                    int(month),
                    int(day),
                    int(hour or 0),
                    int(minute or 0),
                    int(second or 0),
                    tzinfo=timezone.utc,
                )
            except ValueError:
                pass
    return datetime.now(timezone.utc)


def normalize_email(value: Any) -> str:
    return str(value).strip().lower() if value else ""


def normalize_phone(value: Any) -> str:
    """Digits only; Brazilian local numbers (10/11 digits) get the 55 prefix."""
    digits = re.sub(r"\D", "", str(value)) if value else ""
    if len(digits) in (10, 11):
        return "55" + digits
    return digits


def split_name(full_name: Any) -> tuple[str, str]:
    """First token is the first name, the rest is the last name."""
    parts = str(full_name).split() if full_name else []
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def pick_field(row: Dict[str, Any], candidates: Iterable[str]) -> str:
    """Return the first non-empty value among candidate columns, in order."""
    for column in candidates:
        value = row.get(column)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return ""
