# api/app/routers/leagues.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud
from ..auth_firebase import get_current_user
from ..db import get_db
from ..deps.current_user import current_profile, require_admin, require_member
from ..models import League, UserProfile
from ..schemas import LeagueCreateIn, LeagueJoinIn, LeagueSettingsIn
from ..services.sheets import MirrorSink, get_mirror

router = APIRouter(prefix="/api/leagues", tags=["leagues"])


@router.post("")
def create_league(
    payload: LeagueCreateIn,
    profile: UserProfile = Depends(current_profile),
    db: Session = Depends(get_db),
    mirror: MirrorSink = Depends(get_mirror),
):
    """Creator becomes the league admin. Falls back to the bootstrap sheet if the DB is down."""
    return crud.create_league(db, mirror, profile, payload.league_name)


@router.post("/join")
def join_league(
    payload: LeagueJoinIn,
    profile: UserProfile = Depends(current_profile),
    db: Session = Depends(get_db),
):
    out = crud.join_league(db, profile, payload.league_code)
    out["message"] = "Already a member of this league" if out["alreadyMember"] else "Successfully joined league"
    return out


@router.get("/{league_id}/stats")
def league_stats(
    league: League = Depends(require_member),
    db: Session = Depends(get_db),
):
    return crud.league_stats(db, league)


@router.put("/{league_id}/settings")
def update_settings(
    payload: LeagueSettingsIn,
    league: League = Depends(require_admin),
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    league = crud.update_sheet_settings(db, league, payload.google_sheet_id, user["uid"])
    return {
        "success": True,
        "message": "League settings updated successfully",
        "settings": league.as_dict()["settings"],
    }
