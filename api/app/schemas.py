# api/app/schemas.py
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# ---- Leagues ----
class LeagueCreateIn(BaseModel):
    league_name: str = Field(..., alias="leagueName")

    model_config = {"populate_by_name": True}


class LeagueJoinIn(BaseModel):
    league_code: str = Field(..., alias="leagueCode")

    model_config = {"populate_by_name": True}


class LeagueSwitchIn(BaseModel):
    league_id: int = Field(..., alias="leagueId")

    model_config = {"populate_by_name": True}


class LeagueSettingsIn(BaseModel):
    google_sheet_id: str = Field(..., alias="googleSheetId")  # bare id or full URL

    model_config = {"populate_by_name": True}


# ---- Profile ----
class UsernameIn(BaseModel):
    username: Optional[str] = None  # "" clears it


class UsernameCheckIn(BaseModel):
    username: str


# ---- Sheets ----
class SheetVerifyIn(BaseModel):
    sheet_id: str = Field(..., alias="sheetId")

    model_config = {"populate_by_name": True}


# ---- Matchups ----
class MatchupIn(BaseModel):
    week: int = Field(..., ge=1)
    team1: str
    team1_record: str = "0-0"
    team2: str
    team2_record: str = "0-0"


class MatchupsIn(BaseModel):
    matchups: List[MatchupIn]


class MatchupDescriptionIn(BaseModel):
    team1: str
    team1_record: str = "0-0"
    team2: str
    team2_record: str = "0-0"


# ---- Picks / results ----
class PicksIn(BaseModel):
    user_name: str
    picks: Dict[str, str]  # matchup_id -> selected team


class MarkWinnerIn(BaseModel):
    matchup_id: str
    winning_team: str


# ---- Billing ----
class PaymentIntentIn(BaseModel):
    league_id: Optional[int] = Field(None, alias="leagueId")

    model_config = {"populate_by_name": True}
