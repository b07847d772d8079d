# api/app/routers/sheets.py
import logging

import gspread
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import crud
from ..auth_firebase import get_current_user
from ..db import get_db
from ..deps.current_user import require_admin
from ..models import League
from ..schemas import SheetVerifyIn
from ..services import sheets
from ..services.league_codes import clean_sheet_id

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["sheets"])


def _league_sheet_id(league: League) -> str:
    if not league.sheet_id:
        raise HTTPException(status_code=404, detail="League does not have a Google Sheet configured")
    return league.sheet_id


@router.get("/sheets/service-account")
def service_account(user=Depends(get_current_user)):
    """Address admins share their sheet with."""
    email = sheets.service_account_email()
    if not email:
        raise HTTPException(status_code=404, detail="Service account email not configured")
    return {"email": email}


@router.post("/sheets/verify")
def verify_sheet(payload: SheetVerifyIn, user=Depends(get_current_user)):
    sheet_id = clean_sheet_id(payload.sheet_id)
    if not sheet_id:
        raise HTTPException(status_code=400, detail="Sheet ID is required")

    result = sheets.verify_sheet(sheet_id)
    if not result["ok"]:
        body = {k: v for k, v in result.items() if k != "ok"}
        raise HTTPException(status_code=400, detail={"error": "Sheet verification failed", **body})
    return {
        "success": True,
        "message": "Sheet verified successfully",
        "sheets": result["sheets"],
        "rowWarnings": result["rowWarnings"],
    }


@router.post("/leagues/{league_id}/sheet/setup")
def setup_sheet(league: League = Depends(require_admin)):
    sheet_id = _league_sheet_id(league)
    try:
        out = sheets.setup_sheets(sheet_id)
    except gspread.exceptions.APIError as e:
        log.error("Sheet setup failed for league %s: %s", league.id, e)
        raise HTTPException(status_code=400, detail="Cannot access the Google Sheet. Please check sharing permissions.")
    return {"success": True, "message": "Sheets set up successfully", **out}


@router.post("/leagues/{league_id}/sheet")
def create_sheet(
    league: League = Depends(require_admin),
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """New spreadsheet for the league, shared with the admin and saved to settings."""
    try:
        out = sheets.create_league_sheet(league.name, league.league_code, share_with=league.admin_email)
    except gspread.exceptions.APIError as e:
        log.error("Sheet creation failed for league %s: %s", league.id, e)
        raise HTTPException(status_code=503, detail="Google Sheets rejected the request")

    crud.update_sheet_settings(db, league, out["sheetId"], user["uid"])
    return {"success": True, "message": "Google Sheet created successfully", **out}
