# api/app/routers/bets.py
from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ..auth_firebase import get_current_user
from ..db import get_db
from ..deps.current_user import current_profile, require_member
from ..models import League, UserProfile
from ..schemas import PicksIn
from ..services import picks as picks_svc
from ..services.sheets import MirrorSink, get_mirror, run_mirror

router = APIRouter(prefix="/api/leagues", tags=["bets"])


@router.post("/{league_id}/picks")
def submit_picks(
    payload: PicksIn,
    background_tasks: BackgroundTasks,
    league: League = Depends(require_member),
    profile: UserProfile = Depends(current_profile),
    db: Session = Depends(get_db),
    mirror: MirrorSink = Depends(get_mirror),
):
    out = picks_svc.submit_picks(db, league, profile, payload.user_name, payload.picks)
    rows = out.pop("bet_rows")
    if league.sheet_id:
        background_tasks.add_task(run_mirror, "append_bets", mirror.append_bets, league.sheet_id, rows)
    return out


@router.get("/{league_id}/picks/me")
def my_picks(
    league: League = Depends(require_member),
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    picks = picks_svc.list_my_picks(db, league, user["uid"])
    return {"picks": picks, "total": len(picks)}
