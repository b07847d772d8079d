# api/app/deps/current_user.py
from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import crud
from ..auth_firebase import get_current_user as get_fb_claims
from ..db import get_db
from ..models import League, UserProfile


def current_profile(db: Session = Depends(get_db),
                    claims: dict = Depends(get_fb_claims)) -> UserProfile:
    uid = claims.get("uid")
    if not uid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid Firebase token")
    return crud.get_or_create_profile(db, uid, claims.get("email"), claims.get("name"))


def require_member(league_id: int,
                   db: Session = Depends(get_db),
                   claims: dict = Depends(get_fb_claims)) -> League:
    league = crud.get_league_or_404(db, league_id)
    if not crud.get_membership(db, claims["uid"], league.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not a member of this league")
    return league


def require_admin(league_id: int,
                  db: Session = Depends(get_db),
                  claims: dict = Depends(get_fb_claims)) -> League:
    league = crud.get_league_or_404(db, league_id)
    if not crud.is_league_admin(db, league, claims["uid"]):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return league
