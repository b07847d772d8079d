# api/app/auth_firebase.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .services.firebase import verify_id_token

log = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> dict:
    """
    Strict auth:
      - Requires a valid Firebase ID token
      - Returns {uid, email, name}; league/profile lookups live in deps/
    """
    if not creds or not creds.scheme.lower().startswith("bearer"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - No token provided",
        )

    claims = verify_id_token(creds.credentials)
    if not isinstance(claims, dict) or not claims.get("uid"):
        log.info("Rejected bearer token (no uid in claims)")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - Invalid token",
        )

    return {
        "uid": claims["uid"],
        "email": (claims.get("email") or "").lower(),
        "name": claims.get("name"),
    }
