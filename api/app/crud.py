# api/app/crud.py
"""
Primary store for league metadata: leagues, profiles, memberships.

Helpers raise HTTPException for caller-facing failures (400/403/404) so the
routers stay thin. StoreUnavailable is the one domain error; it means both
the primary store and the sheet fallback refused a league.
"""
import logging
import re
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .models import ROLE_ADMIN, ROLE_USER
from .services.league_codes import (
    clean_sheet_id,
    generate_league_code,
    generate_unique_league_code,
    is_valid_league_code,
    normalize_league_code,
)
from .services.sheet_rows import LeagueRow, UserRoleRow, now_iso
from .services.sheets import MirrorSink

log = logging.getLogger(__name__)

DEFAULT_PREFERENCES = {"theme": "dark", "notifications": True}
USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")


class StoreUnavailable(RuntimeError):
    pass


def fallback_display_name(name: Optional[str], email: Optional[str]) -> str:
    if name:
        return name
    if email:
        return email.split("@", 1)[0]
    return "User"


# -------- Profiles --------
def get_profile(db: Session, uid: str) -> Optional[models.UserProfile]:
    return db.query(models.UserProfile).filter(models.UserProfile.user_id == uid).first()


def get_or_create_profile(db: Session, uid: str, email: Optional[str], name: Optional[str]) -> models.UserProfile:
    p = get_profile(db, uid)
    if p:
        if email and p.email != email:
            p.email = email
            db.commit()
        return p
    p = models.UserProfile(
        user_id=uid,
        email=email,
        display_name=fallback_display_name(name, email),
        preferences=dict(DEFAULT_PREFERENCES),
    )
    db.add(p)
    db.commit()
    db.refresh(p)
    log.info("Created profile for %s", uid)
    return p


def pick_name(profile: models.UserProfile) -> str:
    """Name shown on bets and the leaderboard."""
    return profile.username or profile.display_name or "User"


# -------- Leagues --------
def get_league(db: Session, league_id: int) -> Optional[models.League]:
    return db.get(models.League, league_id)


def get_league_or_404(db: Session, league_id: int) -> models.League:
    league = get_league(db, league_id)
    if not league:
        raise HTTPException(status_code=404, detail="League not found")
    return league


def get_league_by_code(db: Session, code: str) -> Optional[models.League]:
    return (
        db.query(models.League)
        .filter(models.League.league_code == code, models.League.is_active.is_(True))
        .first()
    )


def code_exists(db: Session, code: str) -> bool:
    return db.query(models.League.id).filter(models.League.league_code == code).first() is not None


def create_league(db: Session, mirror: MirrorSink, profile: models.UserProfile, name: str) -> dict:
    """
    League + admin membership + legacy role + default league, one transaction.
    If the primary store fails, the league is written to the bootstrap sheet.
    """
    name = (name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="League name is required")

    # read before the transaction; a rollback expires the profile
    uid, email = profile.user_id, profile.email
    display_name = pick_name(profile)
    try:
        code = generate_unique_league_code(lambda c: code_exists(db, c))
        now = datetime.utcnow()
        league = models.League(
            name=name,
            league_code=code,
            admin_user_id=uid,
            admin_email=email,
            is_active=True,
            member_count=1,
            created_at=now,
        )
        db.add(league)
        db.flush()

        db.add(models.UserLeagueMembership(
            user_id=uid,
            user_email=email,
            league_id=league.id,
            role=ROLE_ADMIN,
            display_name=display_name,
            joined_at=now,
            last_accessed_at=now,
        ))
        db.add(models.UserRole(
            user_id=uid,
            user_email=email,
            league_id=league.id,
            role=ROLE_ADMIN,
            display_name=display_name,
            joined_at=now,
        ))
        if not profile.default_league_id:
            profile.default_league_id = league.id
        db.commit()
        db.refresh(league)
    except SQLAlchemyError:
        db.rollback()
        log.error("Primary store failed creating league %r; trying sheet fallback", name, exc_info=True)
        return _create_league_in_sheet(mirror, uid, email, name, display_name)

    log.info("League %s (%s) created by %s", league.id, league.league_code, uid)
    return {
        "success": True,
        "leagueId": league.id,
        "leagueCode": league.league_code,
        "league": league.as_dict(),
        "storage": "database",
        "message": "League created successfully",
    }


def _create_league_in_sheet(mirror: MirrorSink, uid: str, email: Optional[str], name: str, display_name: str) -> dict:
    if not mirror.enabled:
        raise StoreUnavailable("League storage is unavailable")

    # no way to check collisions against the sheet; the code doubles as the id
    code = generate_league_code()
    ts = now_iso()
    try:
        mirror.append_league(LeagueRow(
            timestamp=ts, league_id=code, name=name, admin_email=email or "",
            created_at=ts, member_count=1, is_active=True,
        ))
        mirror.append_user_role(UserRoleRow(
            timestamp=ts, user_id=uid, user_email=email or "",
            display_name=display_name, league_id=code, role=ROLE_ADMIN, joined_at=ts,
        ))
    except Exception as e:
        log.error("Sheet fallback failed creating league %r", name, exc_info=True)
        raise StoreUnavailable("League storage is unavailable") from e

    log.warning("League %s created in sheet fallback only", code)
    return {
        "success": True,
        "leagueId": code,
        "leagueCode": code,
        "league": {"id": code, "name": name, "leagueCode": code, "adminUserId": uid},
        "storage": "sheet",
        "message": "League created successfully",
    }


# -------- Memberships --------
def get_membership(db: Session, uid: str, league_id: int, active_only: bool = True) -> Optional[models.UserLeagueMembership]:
    q = db.query(models.UserLeagueMembership).filter(
        models.UserLeagueMembership.user_id == uid,
        models.UserLeagueMembership.league_id == league_id,
    )
    if active_only:
        q = q.filter(models.UserLeagueMembership.is_active.is_(True))
    return q.first()


def list_memberships(db: Session, uid: str) -> List[models.UserLeagueMembership]:
    return (
        db.query(models.UserLeagueMembership)
        .filter(
            models.UserLeagueMembership.user_id == uid,
            models.UserLeagueMembership.is_active.is_(True),
        )
        .order_by(models.UserLeagueMembership.last_accessed_at.desc())
        .all()
    )


def touch_membership(db: Session, membership: models.UserLeagueMembership) -> None:
    membership.last_accessed_at = datetime.utcnow()
    db.commit()


def is_league_admin(db: Session, league: models.League, uid: str) -> bool:
    if league.admin_user_id == uid:
        return True
    m = get_membership(db, uid, league.id)
    return bool(m and m.role == ROLE_ADMIN)


def join_league(db: Session, profile: models.UserProfile, raw_code: str) -> dict:
    code = normalize_league_code(raw_code)
    if not is_valid_league_code(code):
        raise HTTPException(status_code=400, detail="Invalid league code format")

    league = get_league_by_code(db, code)
    if not league:
        raise HTTPException(status_code=404, detail="League not found")

    existing = get_membership(db, profile.user_id, league.id, active_only=False)
    if existing and existing.is_active:
        return {
            "success": True,
            "alreadyMember": True,
            "league": league.as_dict(),
            "membership": existing.as_dict(),
        }

    now = datetime.utcnow()
    if existing:
        existing.is_active = True
        existing.joined_at = now
        existing.last_accessed_at = now
        membership = existing
    else:
        membership = models.UserLeagueMembership(
            user_id=profile.user_id,
            user_email=profile.email,
            league_id=league.id,
            role=ROLE_USER,
            display_name=pick_name(profile),
            joined_at=now,
            last_accessed_at=now,
        )
        db.add(membership)

    league.member_count = (league.member_count or 0) + 1
    if not profile.default_league_id:
        profile.default_league_id = league.id
    db.commit()
    db.refresh(membership)

    log.info("%s joined league %s", profile.user_id, league.id)
    return {
        "success": True,
        "alreadyMember": False,
        "league": league.as_dict(),
        "membership": membership.as_dict(),
    }


def _require_active_membership(db: Session, uid: str, league_id: int) -> Tuple[models.League, models.UserLeagueMembership]:
    league = get_league(db, league_id)
    if not league or not league.is_active:
        raise HTTPException(status_code=404, detail="League not found")
    m = get_membership(db, uid, league_id)
    if not m:
        raise HTTPException(status_code=403, detail="You are not a member of this league")
    return league, m


def switch_default_league(db: Session, profile: models.UserProfile, league_id: int) -> models.League:
    league, _ = _require_active_membership(db, profile.user_id, league_id)
    profile.default_league_id = league.id
    db.commit()
    return league


def switch_league(db: Session, profile: models.UserProfile, league_id: int) -> Tuple[models.League, models.UserLeagueMembership]:
    league, m = _require_active_membership(db, profile.user_id, league_id)
    profile.default_league_id = league.id
    m.last_accessed_at = datetime.utcnow()
    db.commit()
    return league, m


def resolve_current_league(
    db: Session, profile: models.UserProfile, memberships: List[models.UserLeagueMembership],
) -> Tuple[Optional[models.League], Optional[models.UserLeagueMembership]]:
    """Default league if still a member of it, else the most recently used membership."""
    if profile.default_league_id:
        for m in memberships:
            if m.league_id == profile.default_league_id and m.league and m.league.is_active:
                return m.league, m
    for m in memberships:
        if m.league and m.league.is_active:
            return m.league, m
    return None, None


# -------- Settings / payments --------
def update_sheet_settings(db: Session, league: models.League, raw_sheet_id: str, updated_by: str) -> models.League:
    sheet_id = clean_sheet_id(raw_sheet_id)
    if not sheet_id:
        raise HTTPException(status_code=400, detail="Google Sheet ID is required")
    league.sheet_id = sheet_id
    league.settings_updated_at = datetime.utcnow()
    league.settings_updated_by = updated_by
    db.commit()
    db.refresh(league)
    log.info("League %s sheet set to %s by %s", league.id, sheet_id, updated_by)
    return league


def mark_league_paid(db: Session, league_id: int, payment_id: str) -> Optional[models.League]:
    league = get_league(db, league_id)
    if not league:
        return None
    league.is_paid = True
    league.paid_at = datetime.utcnow()
    league.payment_id = payment_id
    db.commit()
    return league


# -------- Usernames --------
def validate_username(username: str) -> Optional[str]:
    """Error message, or None when the format is fine."""
    if len(username) < 3 or len(username) > 20:
        return "Username must be between 3 and 20 characters"
    if not USERNAME_RE.match(username):
        return "Username can only contain letters, numbers, and underscores"
    return None


def check_username_availability(db: Session, username: str, exclude_uid: Optional[str] = None) -> bool:
    q = db.query(models.UserProfile.id).filter(
        func.lower(models.UserProfile.username) == username.lower()
    )
    if exclude_uid:
        q = q.filter(models.UserProfile.user_id != exclude_uid)
    return q.first() is None


def update_username(db: Session, profile: models.UserProfile, raw: Optional[str], claims_name: Optional[str]) -> dict:
    """
    Set or clear the profile username and carry the new name onto every
    membership and bet. Returns the sheet renames the caller should mirror.
    """
    username = (raw or "").strip()
    old_name = pick_name(profile)

    if username:
        err = validate_username(username)
        if err:
            raise HTTPException(status_code=400, detail=err)
        if not check_username_availability(db, username, exclude_uid=profile.user_id):
            raise HTTPException(status_code=400, detail="Username is already taken")
        profile.username = username.lower()
    else:
        profile.username = None
        profile.display_name = fallback_display_name(claims_name, profile.email)

    new_name = pick_name(profile)
    memberships = list_memberships(db, profile.user_id)
    for m in memberships:
        m.display_name = new_name
    if new_name != old_name:
        db.query(models.Bet).filter(models.Bet.user_id == profile.user_id).update(
            {models.Bet.user_name: new_name}, synchronize_session=False,
        )
    db.commit()

    renames = []
    if new_name != old_name:
        renames = [(m.league.sheet_id, old_name, new_name) for m in memberships if m.league and m.league.sheet_id]

    return {
        "username": profile.username,
        "displayName": new_name,
        "sheetRenames": renames,
    }


# -------- Migration --------
def migrate_user(db: Session, uid: str, email: Optional[str], name: Optional[str]) -> dict:
    """Legacy single-league role -> profile + membership."""
    if get_profile(db, uid):
        return {"userId": uid, "alreadyMigrated": True}

    role = (
        db.query(models.UserRole)
        .filter(models.UserRole.user_id == uid, models.UserRole.is_active.is_(True))
        .order_by(models.UserRole.joined_at.desc())
        .first()
    )
    if not role:
        raise HTTPException(status_code=404, detail="No existing league data to migrate")

    now = datetime.utcnow()
    profile = models.UserProfile(
        user_id=uid,
        email=email or role.user_email,
        display_name=role.display_name or fallback_display_name(name, email),
        default_league_id=role.league_id,
        preferences=dict(DEFAULT_PREFERENCES),
    )
    db.add(profile)
    if role.league_id and not get_membership(db, uid, role.league_id, active_only=False):
        db.add(models.UserLeagueMembership(
            user_id=uid,
            user_email=profile.email,
            league_id=role.league_id,
            role=role.role or ROLE_USER,
            display_name=profile.display_name,
            is_premium=bool(role.is_premium),
            joined_at=role.joined_at or now,
            last_accessed_at=now,
        ))
    db.commit()
    db.refresh(profile)

    log.info("Migrated legacy role %s for %s", role.id, uid)
    return {
        "userId": uid,
        "alreadyMigrated": False,
        "userProfile": profile.as_dict(),
        "memberships": [m.as_dict() for m in list_memberships(db, uid)],
        "migratedFrom": {"roleId": role.id, "leagueId": role.league_id, "role": role.role},
    }


# -------- Stats --------
def league_stats(db: Session, league: models.League) -> dict:
    members = (
        db.query(models.UserLeagueMembership)
        .filter(
            models.UserLeagueMembership.league_id == league.id,
            models.UserLeagueMembership.is_active.is_(True),
        )
        .order_by(models.UserLeagueMembership.joined_at)
        .all()
    )
    bet_count = db.query(func.count(models.Bet.id)).filter(models.Bet.league_id == league.id).scalar() or 0
    matchup_count = db.query(func.count(models.Matchup.id)).filter(models.Matchup.league_id == league.id).scalar() or 0
    completed = (
        db.query(func.count(models.Matchup.id))
        .filter(models.Matchup.league_id == league.id, models.Matchup.winner.isnot(None))
        .scalar()
        or 0
    )
    return {
        "league": league.as_dict(),
        "stats": {
            "memberCount": len(members),
            "betCount": bet_count,
            "matchupCount": matchup_count,
            "activeMatchups": matchup_count - completed,
            "completedMatchups": completed,
        },
        "members": [
            {
                "id": m.id,
                "userId": m.user_id,
                "userEmail": m.user_email,
                "displayName": m.display_name,
                "role": m.role,
                "joinedAt": m.joined_at.isoformat() if m.joined_at else None,
            }
            for m in members
        ],
    }
