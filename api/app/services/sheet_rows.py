# api/app/services/sheet_rows.py
"""
Typed boundary for spreadsheet ranges.

Rows come back from the Sheets API as ragged lists of strings. Each range
has a fixed header; `decode_*` validates a raw row once and returns a typed
record, raising RowDecodeError for anything that does not fit. Nothing past
this module touches raw cell lists.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Sequence, Tuple, TypeVar

from .leaderboard import LeaderboardEntry

MATCHUPS = "Matchups"
BETS = "Bets"
LEADERBOARD = "Leaderboard"
RESULTS = "Results"
LEAGUES = "Leagues"
USER_ROLES = "UserRoles"

HEADERS = {
    MATCHUPS: ["Week", "Team 1", "Team 1 Record", "Team 2", "Team 2 Record"],
    BETS: ["Timestamp", "User Name", "Matchup ID", "Selected Team", "Created At"],
    LEADERBOARD: ["User Name", "Wins", "Losses", "Points"],
    RESULTS: ["Timestamp", "Matchup ID", "Winning Team", "Correct Picks", "Incorrect Picks", "Total Picks"],
    LEAGUES: ["Timestamp", "League ID", "League Name", "Admin Email", "Created At", "Member Count", "Status"],
    USER_ROLES: ["Timestamp", "User ID", "User Email", "Display Name", "League ID", "Role", "Joined At"],
}

# game ranges first, then the bootstrap-only ones
ALL_SHEETS = (MATCHUPS, BETS, LEADERBOARD, RESULTS, LEAGUES, USER_ROLES)

_RECORD_RE = re.compile(r"^\s*(\d+)\s*-\s*(\d+)")


class RowDecodeError(ValueError):
    def __init__(self, sheet: str, row_number: int, reason: str):
        super().__init__(f"{sheet} row {row_number}: {reason}")
        self.sheet = sheet
        self.row_number = row_number
        self.reason = reason


def column_letter(n: int) -> str:
    """1 -> A, 26 -> Z, 27 -> AA."""
    out = ""
    while n > 0:
        n, rem = divmod(n - 1, 26)
        out = chr(65 + rem) + out
    return out


def now_iso() -> str:
    return datetime.utcnow().isoformat(timespec="milliseconds") + "Z"


def _cell(row: Sequence, i: int) -> str:
    if i >= len(row) or row[i] is None:
        return ""
    return str(row[i]).strip()


def _int_cell(sheet: str, row_number: int, row: Sequence, i: int, label: str) -> int:
    raw = _cell(row, i)
    if raw == "":
        return 0
    try:
        return int(float(raw))
    except ValueError:
        raise RowDecodeError(sheet, row_number, f"{label} is not a number: {raw!r}")


def parse_record(record: str | None) -> Tuple[int, int]:
    """'7-3' -> (7, 3); anything unparseable counts as 0-0."""
    m = _RECORD_RE.match(record or "")
    if not m:
        return 0, 0
    return int(m.group(1)), int(m.group(2))


# ---------- typed rows ----------

@dataclass(frozen=True)
class MatchupRow:
    matchup_id: str
    week: int
    team1: str
    team1_record: str
    team2: str
    team2_record: str

    def to_values(self) -> list:
        return [self.week, self.team1, self.team1_record, self.team2, self.team2_record]


@dataclass(frozen=True)
class BetRow:
    timestamp: str
    user_name: str
    matchup_id: str
    selected_team: str
    created_at: str

    def to_values(self) -> list:
        return [self.timestamp, self.user_name, self.matchup_id, self.selected_team, self.created_at]


@dataclass(frozen=True)
class LeaderboardRow:
    user_name: str
    wins: int
    losses: int
    points: int

    @classmethod
    def from_entry(cls, e: LeaderboardEntry) -> "LeaderboardRow":
        return cls(e.user_name, e.wins, e.losses, e.points)

    def to_values(self) -> list:
        return [self.user_name, self.wins, self.losses, self.points]


@dataclass(frozen=True)
class ResultRow:
    timestamp: str
    matchup_id: str
    winning_team: str
    correct_picks: int
    incorrect_picks: int
    total_picks: int

    def to_values(self) -> list:
        return [
            self.timestamp, self.matchup_id, self.winning_team,
            self.correct_picks, self.incorrect_picks, self.total_picks,
        ]


@dataclass(frozen=True)
class LeagueRow:
    timestamp: str
    league_id: str
    name: str
    admin_email: str
    created_at: str
    member_count: int
    is_active: bool

    def to_values(self) -> list:
        return [
            self.timestamp, self.league_id, self.name, self.admin_email,
            self.created_at, self.member_count, "Active" if self.is_active else "Inactive",
        ]


@dataclass(frozen=True)
class UserRoleRow:
    timestamp: str
    user_id: str
    user_email: str
    display_name: str
    league_id: str
    role: str
    joined_at: str

    def to_values(self) -> list:
        return [
            self.timestamp, self.user_id, self.user_email, self.display_name,
            self.league_id, self.role, self.joined_at,
        ]


# ---------- decoders (row_index is 0-based, header excluded) ----------

def decode_matchup(row: Sequence, row_index: int) -> MatchupRow:
    row_number = row_index + 2
    raw_week = _cell(row, 0)
    try:
        week = int(float(raw_week))
    except ValueError:
        raise RowDecodeError(MATCHUPS, row_number, f"week is not a number: {raw_week!r}")
    if week < 1:
        raise RowDecodeError(MATCHUPS, row_number, f"week must be >= 1, got {week}")
    return MatchupRow(
        matchup_id=f"matchup-{week}-{row_index}",
        week=week,
        team1=_cell(row, 1) or "TBD",
        team1_record=_cell(row, 2) or "0-0",
        team2=_cell(row, 3) or "TBD",
        team2_record=_cell(row, 4) or "0-0",
    )


def decode_bet(row: Sequence, row_index: int) -> BetRow:
    row_number = row_index + 2
    user_name = _cell(row, 1)
    matchup_id = _cell(row, 2)
    if not user_name or not matchup_id:
        raise RowDecodeError(BETS, row_number, "user name and matchup id are required")
    return BetRow(
        timestamp=_cell(row, 0),
        user_name=user_name,
        matchup_id=matchup_id,
        selected_team=_cell(row, 3),
        created_at=_cell(row, 4),
    )


def decode_leaderboard(row: Sequence, row_index: int) -> LeaderboardRow:
    row_number = row_index + 2
    user_name = _cell(row, 0)
    if not user_name:
        raise RowDecodeError(LEADERBOARD, row_number, "user name is required")
    return LeaderboardRow(
        user_name=user_name,
        wins=_int_cell(LEADERBOARD, row_number, row, 1, "wins"),
        losses=_int_cell(LEADERBOARD, row_number, row, 2, "losses"),
        points=_int_cell(LEADERBOARD, row_number, row, 3, "points"),
    )


def decode_result(row: Sequence, row_index: int) -> ResultRow:
    row_number = row_index + 2
    matchup_id = _cell(row, 1)
    winning_team = _cell(row, 2)
    if not matchup_id or not winning_team:
        raise RowDecodeError(RESULTS, row_number, "matchup id and winning team are required")
    return ResultRow(
        timestamp=_cell(row, 0),
        matchup_id=matchup_id,
        winning_team=winning_team,
        correct_picks=_int_cell(RESULTS, row_number, row, 3, "correct picks"),
        incorrect_picks=_int_cell(RESULTS, row_number, row, 4, "incorrect picks"),
        total_picks=_int_cell(RESULTS, row_number, row, 5, "total picks"),
    )


DECODERS = {
    MATCHUPS: decode_matchup,
    BETS: decode_bet,
    LEADERBOARD: decode_leaderboard,
    RESULTS: decode_result,
}


T = TypeVar("T")


def decode_rows(
    rows: Sequence[Sequence],
    decoder: Callable[[Sequence, int], T],
    skip_header: bool = True,
) -> Tuple[List[T], List[RowDecodeError]]:
    """Decode a whole range. Blank rows are ignored; bad rows are collected, not raised."""
    body = rows[1:] if skip_header else rows
    good: List[T] = []
    bad: List[RowDecodeError] = []
    for i, row in enumerate(body):
        if not any(_cell(row, j) for j in range(len(row))):
            continue
        try:
            good.append(decoder(row, i))
        except RowDecodeError as e:
            bad.append(e)
    return good, bad


def header_errors(sheet: str, actual: Sequence) -> List[str]:
    expected = HEADERS[sheet]
    if len(actual) < len(expected):
        return [f"{sheet}: Not enough columns (expected {len(expected)}, got {len(actual)})"]
    errors = []
    for i, want in enumerate(expected):
        got = actual[i]
        if got != want:
            errors.append(f'{sheet}: Column {i + 1} should be "{want}" but is "{got}"')
    return errors
