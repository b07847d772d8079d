# api/app/routers/matchups.py
import logging

import gspread
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth_firebase import get_current_user
from ..db import get_db
from ..deps.current_user import require_admin, require_member
from ..models import League
from ..schemas import MatchupDescriptionIn, MatchupsIn
from ..services import matchups as matchup_svc
from ..services import sheets
from ..services.matchup_blurbs import describe_matchup
from ..services.sheets import MirrorSink, get_mirror, run_mirror

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["matchups"])


@router.get("/leagues/{league_id}/matchups")
def current_matchups(
    league: League = Depends(require_member),
    db: Session = Depends(get_db),
):
    """Current (highest) week only."""
    return matchup_svc.list_current_week(db, league)


@router.post("/leagues/{league_id}/matchups")
def add_matchups(
    payload: MatchupsIn,
    background_tasks: BackgroundTasks,
    league: League = Depends(require_admin),
    db: Session = Depends(get_db),
    mirror: MirrorSink = Depends(get_mirror),
):
    rows = matchup_svc.add_matchups(db, league, [m.model_dump() for m in payload.matchups])
    if league.sheet_id:
        background_tasks.add_task(run_mirror, "append_matchups", mirror.append_matchups, league.sheet_id, rows)
    return {
        "success": True,
        "added": len(rows),
        "matchupIds": [r.matchup_id for r in rows],
    }


@router.post("/leagues/{league_id}/matchups/sync")
def sync_matchups(
    league: League = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Pull the league sheet's Matchups range into the DB; undecodable rows are reported."""
    if not league.sheet_id:
        raise HTTPException(status_code=404, detail="League does not have a Google Sheet configured")
    try:
        rows, errors = sheets.read_matchups(league.sheet_id)
    except gspread.exceptions.APIError as e:
        log.error("Reading matchups for league %s failed: %s", league.id, e)
        raise HTTPException(status_code=400, detail="Cannot read the Matchups sheet")

    for e in errors:
        log.warning("League %s: %s", league.id, e)
    counts = matchup_svc.upsert_from_rows(db, league, rows)
    return matchup_svc.sync_report(counts, errors)


@router.post("/matchups/description")
def matchup_description(
    payload: MatchupDescriptionIn,
    user=Depends(get_current_user),
):
    return {
        "description": describe_matchup(
            payload.team1, payload.team1_record, payload.team2, payload.team2_record,
        )
    }
