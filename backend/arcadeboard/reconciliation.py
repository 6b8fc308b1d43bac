"""
Run ingestion and best-record reconciliation.

Submitting a run is two separate writes: the run is appended to history and
committed first, then folded into the player's record. The two are not
atomic. If the second write fails the run stays in history and the record
can be recomputed with rebuild_player(), since history is authoritative.

The fold itself (new_player / apply_run) is pure and works on anything with
name, score, time, level and game attributes, so the same rules serve live
submissions and rebuilds.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from arcadeboard.cache import cache
from arcadeboard.config import get_settings
from arcadeboard.exceptions import RunPersistenceError
from arcadeboard.models import Player, PlayerGameBest, Run, utcnow
from arcadeboard.monitoring import monitor_transaction, record_custom_event
from arcadeboard.schemas import RunSubmission

logger = logging.getLogger(__name__)


def new_player(player_id: str, run, now: datetime) -> Player:
    """Build the first record of a player from their first run."""
    player = Player(
        player_id=player_id,
        name=run.name or "",
        best_score=run.score,
        best_time=run.time if run.time > 0 else 0,
        last_level=run.level,
        updated_at=now,
    )
    player.game_bests.append(PlayerGameBest(game=run.game, best_score=run.score))
    return player


def apply_run(player: Player, run, now: datetime) -> Player:
    """
    Fold one more run into an existing record.

    - a non-empty name replaces the stored one
    - only the slot of the run's game can improve, and only on a strictly
      higher score (a missing slot counts as 0)
    - best_score is recomputed over every slot
    - best_time only moves to a strictly positive, strictly lower time
    - last_level always takes the run's level
    """
    if run.name and run.name != player.name:
        player.name = run.name

    slot = next((s for s in player.game_bests if s.game == run.game), None)
    if slot is None:
        if run.score > 0:
            player.game_bests.append(PlayerGameBest(game=run.game, best_score=run.score))
    elif run.score > slot.best_score:
        slot.best_score = run.score

    player.best_score = max(player.best_scores(get_settings().supported_games).values())

    if run.time > 0 and (player.best_time == 0 or run.time < player.best_time):
        player.best_time = run.time

    player.last_level = run.level
    player.updated_at = now
    return player


def _locked_player(db: Session, player_id: str) -> Optional[Player]:
    """Load a record with its slots, locking the row where the database supports it."""
    return db.query(Player)\
        .options(selectinload(Player.game_bests))\
        .filter(Player.player_id == player_id)\
        .with_for_update()\
        .one_or_none()


def record_run(db: Session, submission: RunSubmission) -> Run:
    """Append a run to history. Raises RunPersistenceError if it is not stored."""
    run = Run(
        player_id=submission.player_id,
        name=submission.name,
        score=submission.score,
        time=submission.time,
        level=submission.level,
        game=submission.game,
        created_at=utcnow(),
    )
    try:
        db.add(run)
        db.commit()
        db.refresh(run)
    except SQLAlchemyError as e:
        db.rollback()
        raise RunPersistenceError(f"Could not store run for player {submission.player_id}") from e
    return run


def reconcile_player(db: Session, run: Run) -> Player:
    """Create or update the record of run.player_id from a stored run."""
    now = utcnow()
    player = _locked_player(db, run.player_id)
    if player is not None:
        apply_run(player, run, now)
        db.commit()
        return player

    player = new_player(run.player_id, run, now)
    db.add(player)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent first submission created the record; fold into that one
        db.rollback()
        logger.info(f"Player {run.player_id} created concurrently, reconciling against it")
        player = _locked_player(db, run.player_id)
        apply_run(player, run, now)
        db.commit()
        return player

    return player


@monitor_transaction("Runs/submit")
def submit_run(db: Session, submission: RunSubmission) -> Player:
    """
    Store a run and reconcile the player's record.

    Raises:
        RunPersistenceError: the run was not stored; nothing was changed.
        SQLAlchemyError: the run was stored but the record update failed.
    """
    run = record_run(db, submission)
    run_id = run.id
    logger.debug(f"Run {run_id} stored: player_id={submission.player_id}, game={submission.game}")

    try:
        player = reconcile_player(db, run)
    except SQLAlchemyError:
        db.rollback()
        logger.error(
            f"Run {run_id} stored but player {submission.player_id} was not updated; "
            "rebuild the player from history to repair it"
        )
        raise

    record_custom_event("RunSubmitted", {
        "game": submission.game,
        "score": submission.score,
        "playerId": submission.player_id,
    })
    return player


def rebuild_player(db: Session, player_id: str) -> Optional[Player]:
    """
    Recompute a player's record from scratch by replaying their runs in order.

    Returns None (and leaves any existing record alone) when the player has
    no runs. A rebuilt record drops the player's cached summary and every
    cached leaderboard.
    """
    runs = db.query(Run)\
        .filter(Run.player_id == player_id)\
        .order_by(Run.created_at.asc(), Run.id.asc())\
        .all()
    if not runs:
        return None

    rebuilt = new_player(player_id, runs[0], runs[0].created_at)
    for run in runs[1:]:
        apply_run(rebuilt, run, run.created_at)

    existing = _locked_player(db, player_id)
    if existing is not None:
        db.delete(existing)
        db.flush()
    db.add(rebuilt)
    db.commit()

    cache.invalidate_after_run(player_id)
    logger.info(f"Rebuilt player {player_id} from {len(runs)} runs")
    return rebuilt
