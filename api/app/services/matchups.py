# api/app/services/matchups.py
from __future__ import annotations

import logging
import re
from typing import Dict, List, Sequence

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import League, Matchup
from .sheet_rows import MatchupRow, RowDecodeError

log = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^matchup-\d+-(\d+)$")


def matchup_key(week: int, index: int) -> str:
    """Stable id shared by the DB and the sheet: row position across the league."""
    return f"matchup-{week}-{index}"


def next_matchup_index(db: Session, league_id: int) -> int:
    """One past the highest row position in use; sheet syncs can leave gaps."""
    highest = -1
    for (key,) in db.query(Matchup.matchup_key).filter(Matchup.league_id == league_id):
        m = _KEY_RE.match(key or "")
        if m:
            highest = max(highest, int(m.group(1)))
    return highest + 1


def all_matchups(db: Session, league_id: int) -> List[Matchup]:
    return (
        db.query(Matchup)
        .filter(Matchup.league_id == league_id)
        .order_by(Matchup.id)
        .all()
    )


def current_week_of(matchups: Sequence[Matchup]) -> int:
    return max((m.week for m in matchups), default=1)


def get_matchup(db: Session, league_id: int, key: str) -> Matchup | None:
    return (
        db.query(Matchup)
        .filter(Matchup.league_id == league_id, Matchup.matchup_key == key)
        .first()
    )


def list_current_week(db: Session, league: League) -> dict:
    rows = all_matchups(db, league.id)
    if not rows:
        raise HTTPException(status_code=404, detail="No matchups found")

    weeks = sorted({m.week for m in rows})
    week = weeks[-1]
    current = [m for m in rows if m.week == week]
    return {
        "matchups": [m.as_dict() for m in current],
        "currentWeek": week,
        "allWeeks": weeks,
        "totalMatchups": len(current),
    }


def add_matchups(db: Session, league: League, rows: List[dict]) -> List[MatchupRow]:
    """
    Append admin-authored matchups. Keys continue after the highest row
    position in use so they line up with the sheet rows the mirror appends.
    """
    if not rows:
        raise HTTPException(status_code=400, detail="At least one matchup is required")

    offset = next_matchup_index(db, league.id)
    created: List[MatchupRow] = []
    for i, r in enumerate(rows):
        week = int(r["week"])
        if week < 1:
            raise HTTPException(status_code=400, detail="Week must be 1 or greater")
        team1 = (r.get("team1") or "").strip() or "TBD"
        team2 = (r.get("team2") or "").strip() or "TBD"
        if team1.lower() == team2.lower():
            raise HTTPException(status_code=400, detail=f"A team cannot play itself: {team1}")
        row = MatchupRow(
            matchup_id=matchup_key(week, offset + i),
            week=week,
            team1=team1,
            team1_record=(r.get("team1_record") or "").strip() or "0-0",
            team2=team2,
            team2_record=(r.get("team2_record") or "").strip() or "0-0",
        )
        db.add(Matchup(
            league_id=league.id,
            matchup_key=row.matchup_id,
            week=row.week,
            team1=row.team1,
            team1_record=row.team1_record,
            team2=row.team2,
            team2_record=row.team2_record,
        ))
        created.append(row)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Matchup ids are already in use; sync the sheet and try again")
    log.info("Added %d matchups to league %s", len(created), league.id)
    return created


def upsert_from_rows(db: Session, league: League, rows: Sequence[MatchupRow]) -> Dict[str, int]:
    """Apply decoded sheet rows; winners already marked in the DB are kept."""
    existing = {m.matchup_key: m for m in all_matchups(db, league.id)}
    created = updated = 0
    for r in rows:
        m = existing.get(r.matchup_id)
        if m is None:
            db.add(Matchup(
                league_id=league.id,
                matchup_key=r.matchup_id,
                week=r.week,
                team1=r.team1,
                team1_record=r.team1_record,
                team2=r.team2,
                team2_record=r.team2_record,
            ))
            created += 1
            continue
        if (m.week, m.team1, m.team1_record, m.team2, m.team2_record) != (
            r.week, r.team1, r.team1_record, r.team2, r.team2_record,
        ):
            m.week = r.week
            m.team1, m.team1_record = r.team1, r.team1_record
            m.team2, m.team2_record = r.team2, r.team2_record
            updated += 1
    db.commit()
    return {"created": created, "updated": updated}


def sync_report(counts: Dict[str, int], errors: Sequence[RowDecodeError]) -> dict:
    return {
        "success": True,
        "created": counts["created"],
        "updated": counts["updated"],
        "skipped": [
            {"row": e.row_number, "reason": e.reason} for e in errors
        ],
    }
