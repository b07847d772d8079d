# api/app/services/firebase.py
import json
import logging
from typing import Optional

import firebase_admin
from firebase_admin import auth as fb_auth, credentials as fb_credentials

from ..settings import settings

log = logging.getLogger(__name__)

_initialized = False


def _ensure_init() -> bool:
    """
    Initialise the Firebase Admin SDK once, using either:

    - FIREBASE_SERVICE_ACCOUNT_JSON (production), or
    - Application Default Credentials (local dev).
    """
    global _initialized
    if _initialized:
        return True

    if not firebase_admin._apps:
        try:
            if settings.FIREBASE_SERVICE_ACCOUNT_JSON:
                cred = fb_credentials.Certificate(json.loads(settings.FIREBASE_SERVICE_ACCOUNT_JSON))
            else:
                cred = fb_credentials.ApplicationDefault()
            firebase_admin.initialize_app(cred)
        except Exception:
            # Don't take the API down; auth calls will 401 until this is fixed.
            log.error("Firebase admin init failed", exc_info=True)
            return False

    _initialized = True
    return True


def verify_id_token(id_token: str) -> Optional[dict]:
    """
    Returns decoded claims or None if the token is invalid or Firebase
    is unavailable.
    """
    if not id_token or not _ensure_init():
        return None
    try:
        return fb_auth.verify_id_token(id_token)
    except Exception as e:
        log.info("verify_id_token rejected token: %r", e)
        return None
