# api/app/services/results.py
from __future__ import annotations

import logging
from typing import List, Tuple

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..models import Bet, League, Matchup, ResultLog
from .leaderboard import LeaderboardEntry, Pick, Result, compute_leaderboard, tally_matchup
from .matchups import get_matchup
from .sheet_rows import LeaderboardRow, ResultRow, now_iso

log = logging.getLogger(__name__)


def league_picks(db: Session, league_id: int) -> List[Pick]:
    rows = (
        db.query(Bet.user_name, Bet.matchup_key, Bet.selected_team)
        .filter(Bet.league_id == league_id)
        .order_by(Bet.id)
        .all()
    )
    return [Pick(name, key, team) for name, key, team in rows]


def league_results(db: Session, league_id: int) -> List[Result]:
    rows = (
        db.query(Matchup.matchup_key, Matchup.winner)
        .filter(Matchup.league_id == league_id, Matchup.winner.isnot(None))
        .order_by(Matchup.id)
        .all()
    )
    return [Result(key, winner) for key, winner in rows]


def league_leaderboard(db: Session, league_id: int) -> List[LeaderboardEntry]:
    return compute_leaderboard(league_picks(db, league_id), league_results(db, league_id))


def get_leaderboard(db: Session, league: League) -> dict:
    board = league_leaderboard(db, league.id)
    return {
        "leaderboard": [e.as_dict() for e in board],
        "totalUsers": len(board),
    }


def mark_winner(
    db: Session, league: League, matchup_id: str, winning_team: str, recorded_by: str,
) -> Tuple[dict, ResultRow, List[LeaderboardRow]]:
    """
    Set the winner and rebuild the standings from every bet and winner.
    Marking the same matchup again overwrites the winner; nothing is folded
    into a previous snapshot, so totals never double count.
    """
    if not matchup_id or not (winning_team or "").strip():
        raise HTTPException(status_code=400, detail="Matchup ID and winning team are required")

    m = get_matchup(db, league.id, matchup_id)
    if not m:
        raise HTTPException(status_code=404, detail="Matchup not found")
    if not m.has_team(winning_team):
        raise HTTPException(status_code=400, detail=f"{winning_team!r} is not playing in {matchup_id}")

    winner = m.team1 if m.team1.lower() == winning_team.strip().lower() else m.team2
    previous = m.winner
    m.winner = winner

    picks = league_picks(db, league.id)
    correct, incorrect = tally_matchup(picks, matchup_id, winner)
    db.add(ResultLog(
        league_id=league.id,
        matchup_key=matchup_id,
        winning_team=winner,
        correct_picks=correct,
        incorrect_picks=incorrect,
        total_picks=correct + incorrect,
        recorded_by=recorded_by,
    ))
    db.commit()

    if previous and previous != winner:
        log.warning("League %s %s winner changed %s -> %s", league.id, matchup_id, previous, winner)

    board = compute_leaderboard(picks, league_results(db, league.id))
    log.info(
        "League %s %s won by %s (%d correct / %d incorrect)",
        league.id, matchup_id, winner, correct, incorrect,
    )

    body = {
        "message": "Winner marked successfully",
        "matchupId": matchup_id,
        "winningTeam": winner,
        "correctPicks": correct,
        "incorrectPicks": incorrect,
        "totalPicks": correct + incorrect,
        "leaderboard": [e.as_dict() for e in board[:10]],
        "totalUsers": len(board),
    }
    result_row = ResultRow(now_iso(), matchup_id, winner, correct, incorrect, correct + incorrect)
    return body, result_row, [LeaderboardRow.from_entry(e) for e in board]
