# api/app/routers/users.py
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import crud
from ..auth_firebase import get_current_user
from ..db import get_db
from ..deps.current_user import current_profile
from ..models import UserProfile
from ..schemas import LeagueSwitchIn, UsernameCheckIn, UsernameIn
from ..services.sheets import MirrorSink, get_mirror, run_mirror

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me/leagues")
def my_leagues(
    profile: UserProfile = Depends(current_profile),
    db: Session = Depends(get_db),
):
    memberships = crud.list_memberships(db, profile.user_id)
    league, membership = crud.resolve_current_league(db, profile, memberships)
    return {
        "userProfile": profile.as_dict(),
        "memberships": [m.as_dict() for m in memberships],
        "leagues": [m.league.as_dict() for m in memberships if m.league],
        "currentLeague": league.as_dict() if league else None,
        "currentMembership": membership.as_dict() if membership else None,
    }


@router.get("/me/role")
def my_role(
    league_id: Optional[int] = None,
    profile: UserProfile = Depends(current_profile),
    db: Session = Depends(get_db),
):
    """Role in one league, or in the current league when none is given."""
    if league_id is None:
        league, membership = crud.resolve_current_league(db, profile, crud.list_memberships(db, profile.user_id))
    else:
        league = crud.get_league(db, league_id)
        membership = crud.get_membership(db, profile.user_id, league_id) if league else None

    if not league or not membership:
        return {
            "userRole": None,
            "league": None,
            "message": "User has no role yet - needs to create or join a league",
        }

    crud.touch_membership(db, membership)
    return {"userRole": membership.as_dict(), "league": league.as_dict()}


@router.post("/me/default-league")
def set_default_league(
    payload: LeagueSwitchIn,
    profile: UserProfile = Depends(current_profile),
    db: Session = Depends(get_db),
):
    league = crud.switch_default_league(db, profile, payload.league_id)
    return {
        "success": True,
        "message": "Default league updated successfully",
        "defaultLeagueId": league.id,
        "league": league.as_dict(),
    }


@router.post("/me/switch-league")
def switch_league(
    payload: LeagueSwitchIn,
    profile: UserProfile = Depends(current_profile),
    db: Session = Depends(get_db),
):
    league, membership = crud.switch_league(db, profile, payload.league_id)
    return {
        "success": True,
        "message": "League switched successfully",
        "league": league.as_dict(),
        "membership": membership.as_dict(),
    }


@router.post("/me/username")
def set_username(
    payload: UsernameIn,
    background_tasks: BackgroundTasks,
    user=Depends(get_current_user),
    profile: UserProfile = Depends(current_profile),
    db: Session = Depends(get_db),
    mirror: MirrorSink = Depends(get_mirror),
):
    if payload.username is None:
        raise HTTPException(status_code=400, detail="No valid update data provided")

    out = crud.update_username(db, profile, payload.username, user.get("name"))
    for sheet_id, old_name, new_name in out.pop("sheetRenames"):
        background_tasks.add_task(run_mirror, "rename_user", mirror.rename_user, sheet_id, old_name, new_name)

    message = "Username updated successfully" if out["username"] else "Username cleared successfully"
    return {"success": True, "message": message, **out}


@router.post("/username/check")
def check_username(
    payload: UsernameCheckIn,
    profile: UserProfile = Depends(current_profile),
    db: Session = Depends(get_db),
):
    username = payload.username.strip()
    err = crud.validate_username(username)
    if err:
        return {"available": False, "error": err}
    available = crud.check_username_availability(db, username, exclude_uid=profile.user_id)
    return {"available": available, "username": username.lower()}


@router.post("/me/migrate")
def migrate(
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    data = crud.migrate_user(db, user["uid"], user.get("email"), user.get("name"))
    message = (
        "User already migrated to multi-league system"
        if data["alreadyMigrated"]
        else "User successfully migrated to multi-league system"
    )
    return {"success": True, "message": message, "data": data}
