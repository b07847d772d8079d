# api/app/services/leaderboard.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple


@dataclass(frozen=True)
class Pick:
    user_name: str
    matchup_id: str
    selected_team: str


@dataclass(frozen=True)
class Result:
    matchup_id: str
    winning_team: str


@dataclass
class LeaderboardEntry:
    user_name: str
    wins: int = 0
    losses: int = 0
    rank: int = 0
    points: int = field(init=False, default=0)

    @property
    def total_picks(self) -> int:
        return self.wins + self.losses

    def as_dict(self) -> dict:
        return {
            "user_name": self.user_name,
            "wins": self.wins,
            "losses": self.losses,
            "correct_picks": self.wins,
            "total_picks": self.total_picks,
            "points": self.points,
            "win_percentage": self.points,
            "rank": self.rank,
        }


# ---------- utils ----------

def _norm_team(s: str | None) -> str:
    return (s or "").strip().lower()


def is_correct(selected_team: str, winning_team: str) -> bool:
    return _norm_team(selected_team) == _norm_team(winning_team)


def win_percentage(wins: int, total: int) -> int:
    """round(wins / total * 100), halves rounded up; 0 when nothing resolved."""
    if total <= 0:
        return 0
    return (200 * wins + total) // (2 * total)


def results_by_matchup(results: Iterable[Result]) -> Dict[str, str]:
    # first recorded result for a matchup wins
    out: Dict[str, str] = {}
    for r in results:
        if r.matchup_id and r.matchup_id not in out:
            out[r.matchup_id] = r.winning_team
    return out


# ---------- core ----------

def tally_matchup(picks: Iterable[Pick], matchup_id: str, winning_team: str) -> Tuple[int, int]:
    """(correct, incorrect) for one matchup; feeds the results audit log."""
    correct = incorrect = 0
    for p in picks:
        if p.matchup_id != matchup_id:
            continue
        if is_correct(p.selected_team, winning_team):
            correct += 1
        else:
            incorrect += 1
    return correct, incorrect


def compute_leaderboard(picks: Iterable[Pick], results: Iterable[Result]) -> List[LeaderboardEntry]:
    """
    Full recompute from source rows:
      - picks on matchups without a recorded result are skipped
      - users only appear once they have at least one resolved pick
      - sort: points desc, then total picks desc; rank = 1..N by position
    """
    winners = results_by_matchup(results)
    stats: Dict[str, LeaderboardEntry] = {}

    for p in picks:
        winning_team = winners.get(p.matchup_id)
        if winning_team is None:
            continue
        entry = stats.get(p.user_name)
        if entry is None:
            entry = stats[p.user_name] = LeaderboardEntry(user_name=p.user_name)
        if is_correct(p.selected_team, winning_team):
            entry.wins += 1
        else:
            entry.losses += 1

    board = list(stats.values())
    for e in board:
        e.points = win_percentage(e.wins, e.total_picks)

    board.sort(key=lambda e: (e.points, e.total_picks), reverse=True)
    for i, e in enumerate(board, start=1):
        e.rank = i
    return board
