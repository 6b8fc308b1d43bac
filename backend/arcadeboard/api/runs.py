"""
Run submission endpoint.

Stores the run in history, then folds it into the player's best record.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from typing import Optional

from arcadeboard.cache import cache
from arcadeboard.database import get_db
from arcadeboard.exceptions import RunPersistenceError
from arcadeboard.models import User
from arcadeboard.ranking import player_summary
from arcadeboard.reconciliation import submit_run
from arcadeboard.schemas import RunSubmission, RunResponse, ErrorResponse
from arcadeboard.security import require_user_for_runs

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["runs"])


@router.post(
    "/runs",
    response_model=RunResponse,
    status_code=200,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid run data"},
        401: {"model": ErrorResponse, "description": "Missing or invalid token (only when runs require auth)"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Submit a game run",
    description="""
    Record a finished game run and update the player's best record.

    - `score`, `time` and `level` must be finite numbers (numeric strings are accepted)
    - `time` is in seconds; 0 means no time was recorded
    - unknown or missing `game` tags are stored under the default game

    Resubmitting the same run stores it twice.
    """
)
async def create_run(
    submission: RunSubmission,
    request: Request,
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(require_user_for_runs),
):
    logger.info(
        f"Run submission: player_id={submission.player_id}, game={submission.game}, "
        f"score={submission.score}, time={submission.time}, level={submission.level}, "
        f"client_ip={request.client.host if request.client else 'unknown'}"
    )

    run_stored = True
    try:
        player = submit_run(db, submission)
        summary = player_summary(player)
    except RunPersistenceError as e:
        run_stored = False
        logger.error(f"Run not stored: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error")
    except Exception as e:
        db.rollback()
        logger.error(
            f"Run submission failed: player_id={submission.player_id}, error={str(e)}",
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Server error")
    finally:
        # A stored run changes per-game boards even when the record update failed
        if run_stored:
            cache.invalidate_after_run(submission.player_id)

    logger.info(
        f"Run submission completed: player_id={summary.player_id}, "
        f"best_score={summary.best_score}, best_time={summary.best_time}"
    )
    return RunResponse(player=summary)
