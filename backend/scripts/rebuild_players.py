"""
Recompute player records from run history.

Run history is authoritative. Use this after a failure between storing a
run and updating its player, or after changing the reconciliation rules.

    python scripts/rebuild_players.py              # every player with runs
    python scripts/rebuild_players.py p1 p2        # only these players
"""
import sys
import os
import time

# Add parent directory to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from arcadeboard.database import SessionLocal, init_db
from arcadeboard.models import Run
from arcadeboard.reconciliation import rebuild_player


def main(player_ids: list[str]):
    init_db()
    session = SessionLocal()
    start_time = time.time()
    try:
        if not player_ids:
            player_ids = [row[0] for row in session.query(Run.player_id).distinct().all()]
        print(f"Rebuilding {len(player_ids):,} players...")

        rebuilt = 0
        for player_id in player_ids:
            if rebuild_player(session, player_id) is None:
                print(f"  skipped {player_id}: no runs")
            else:
                rebuilt += 1

        print(f"✓ Rebuilt {rebuilt:,} players in {time.time() - start_time:.2f} seconds")
    except Exception as e:
        print(f"✗ Rebuild failed: {e}")
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main(sys.argv[1:])
