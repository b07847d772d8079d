# api/app/services/picks.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import crud
from ..models import Bet, League, UserProfile
from .matchups import all_matchups, current_week_of
from .sheet_rows import BetRow

log = logging.getLogger(__name__)


def submit_picks(
    db: Session, league: League, profile: UserProfile, user_name: str, picks: Dict[str, str],
) -> dict:
    """
    Validate and store one pick per matchup. Returns the response body plus
    the rows to mirror under "bet_rows" (popped by the router).

    Bets are always stored under the caller's profile name; the submitted
    user_name only has to be present.
    """
    if not (user_name or "").strip():
        raise HTTPException(status_code=400, detail="User name is required")
    uid = profile.user_id
    user_name = crud.pick_name(profile)
    if not picks:
        raise HTTPException(status_code=400, detail="At least one pick is required")

    rows = all_matchups(db, league.id)
    if not rows:
        raise HTTPException(status_code=400, detail="No matchups found")

    week = current_week_of(rows)
    current = {m.matchup_key: m for m in rows if m.week == week}

    invalid = [mid for mid in picks if mid not in current]
    if invalid:
        raise HTTPException(status_code=400, detail={
            "error": "Cannot submit picks for previous weeks. Please only select current week matchups.",
            "invalidMatchups": invalid,
            "currentWeek": week,
            "availableMatchups": list(current),
        })

    for mid, team in picks.items():
        m = current[mid]
        if m.winner:
            raise HTTPException(status_code=400, detail=f"Picks are locked for {mid}; a winner has been marked")
        if not m.has_team(team):
            raise HTTPException(status_code=400, detail=f"{team!r} is not playing in {mid}")

    already = {
        b.matchup_key
        for b in db.query(Bet.matchup_key).filter(
            Bet.league_id == league.id,
            Bet.user_id == uid,
            Bet.matchup_key.in_(list(picks)),
        )
    }
    if already:
        raise HTTPException(status_code=400, detail={
            "error": "You already have a pick for one or more of these matchups",
            "duplicateMatchups": sorted(already),
        })

    now = datetime.utcnow()
    stamp = now.isoformat(timespec="milliseconds") + "Z"
    bet_rows: List[BetRow] = []
    for mid, team in picks.items():
        m = current[mid]
        # store the team as the matchup spells it
        selected = m.team1 if m.team1.lower() == team.strip().lower() else m.team2
        db.add(Bet(
            league_id=league.id,
            user_id=uid,
            user_name=user_name,
            matchup_key=mid,
            selected_team=selected,
            created_at=now,
        ))
        bet_rows.append(BetRow(stamp, user_name, mid, selected, stamp))

    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent submit from the same user
        db.rollback()
        raise HTTPException(status_code=400, detail="You already have a pick for one or more of these matchups")

    log.info("%s submitted %d picks in league %s week %s", uid, len(bet_rows), league.id, week)
    return {
        "message": "Bets submitted successfully",
        "betsSubmitted": len(bet_rows),
        "currentWeek": week,
        "bet_rows": bet_rows,
    }


def list_my_picks(db: Session, league: League, uid: str) -> List[dict]:
    rows = (
        db.query(Bet)
        .filter(Bet.league_id == league.id, Bet.user_id == uid)
        .order_by(Bet.created_at.desc(), Bet.id.desc())
        .all()
    )
    return [b.as_dict() for b in rows]
