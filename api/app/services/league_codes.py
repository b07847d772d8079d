# api/app/services/league_codes.py
from __future__ import annotations

import re
import secrets
import string
from typing import Callable

ALPHABET = string.ascii_uppercase + string.digits
LEAGUE_CODE_RE = re.compile(r"^[A-Z0-9]{3}-[A-Z0-9]{3}-[A-Z0-9]{4}$")
_GROUPS = (3, 3, 4)
MAX_CODE_ATTEMPTS = 20

_SHEET_URL_PREFIX = re.compile(r"^https://docs\.google\.com/spreadsheets/d/")


class LeagueCodeExhausted(RuntimeError):
    pass


def generate_league_code() -> str:
    """XXX-XXX-XXXX from A-Z0-9."""
    return "-".join(
        "".join(secrets.choice(ALPHABET) for _ in range(n)) for n in _GROUPS
    )


def is_valid_league_code(code: str | None) -> bool:
    return bool(code) and bool(LEAGUE_CODE_RE.match(code))


def generate_unique_league_code(exists: Callable[[str], bool]) -> str:
    """Draw codes until `exists` says one is free."""
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_league_code()
        if not exists(code):
            return code
    raise LeagueCodeExhausted(f"no free league code after {MAX_CODE_ATTEMPTS} attempts")


def normalize_league_code(raw: str | None) -> str:
    """
    Accept what people type ("abc def 1234", "ABCDEF1234") and put the
    hyphens back where they belong. Extra characters past 10 are dropped.
    """
    cleaned = re.sub(r"[^A-Za-z0-9]", "", raw or "").upper()
    if len(cleaned) <= 3:
        return cleaned
    if len(cleaned) <= 6:
        return f"{cleaned[:3]}-{cleaned[3:]}"
    return f"{cleaned[:3]}-{cleaned[3:6]}-{cleaned[6:10]}"


def clean_sheet_id(value: str | None) -> str:
    """Full Google Sheets URL or bare id -> bare id."""
    v = (value or "").strip()
    v = _SHEET_URL_PREFIX.sub("", v)
    return v.split("/", 1)[0]
