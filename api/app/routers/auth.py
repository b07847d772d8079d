# api/app/routers/auth.py
from fastapi import APIRouter, Depends

from ..auth_firebase import get_current_user
from ..deps.current_user import current_profile
from ..models import UserProfile

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/me")
def me(
    user=Depends(get_current_user),
    profile: UserProfile = Depends(current_profile),
):
    """Verified identity plus the stored profile; first call creates the profile."""
    return {
        "uid": user["uid"],
        "email": user.get("email"),
        "display_name": user.get("name"),
        "profile": profile.as_dict(),
    }
