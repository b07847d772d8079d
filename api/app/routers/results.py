# api/app/routers/results.py
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ..auth_firebase import get_current_user
from ..db import get_db
from ..deps.current_user import require_admin, require_member
from ..models import League
from ..schemas import MarkWinnerIn
from ..services import results as results_svc
from ..services.sheets import MirrorSink, get_mirror, run_mirror

router = APIRouter(prefix="/api/leagues", tags=["results"])


@router.post("/{league_id}/results")
def mark_winner(
    payload: MarkWinnerIn,
    background_tasks: BackgroundTasks,
    league: League = Depends(require_admin),
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
    mirror: MirrorSink = Depends(get_mirror),
):
    """Admin marks a winner; standings are rebuilt from every bet and result."""
    body, result_row, board_rows = results_svc.mark_winner(
        db, league, payload.matchup_id, payload.winning_team, recorded_by=user["uid"],
    )
    if league.sheet_id:
        background_tasks.add_task(run_mirror, "write_leaderboard", mirror.write_leaderboard, league.sheet_id, board_rows)
        background_tasks.add_task(run_mirror, "append_result", mirror.append_result, league.sheet_id, result_row)
    return body


@router.get("/{league_id}/leaderboard")
def leaderboard(
    league: League = Depends(require_member),
    db: Session = Depends(get_db),
):
    return results_svc.get_leaderboard(db, league)
