"""
Script to populate a development database with synthetic runs.

Runs go through the same ingestion service as the API, so player records
come out exactly as live traffic would build them.
"""
import sys
import os
import time
import random
import argparse

# Add parent directory to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from faker import Faker
import numpy as np

from arcadeboard.config import get_settings
from arcadeboard.database import SessionLocal, init_db
from arcadeboard.models import Player, Run
from arcadeboard.reconciliation import submit_run
from arcadeboard.schemas import RunSubmission

fake = Faker()
settings = get_settings()


def generate_players(total_players: int) -> list[tuple[str, str]]:
    """Player ids and display names."""
    return [(f"player-{i}-{fake.uuid4()[:8]}", fake.user_name()) for i in range(total_players)]


def generate_runs(session, players, total_runs: int):
    """Submit runs, picking players with a Zipf distribution so a few play a lot."""
    print(f"\nSubmitting {total_runs:,} runs for {len(players):,} players...")
    start_time = time.time()
    zipf_param = 1.5

    for i in range(1, total_runs + 1):
        zipf_index = int(np.random.zipf(zipf_param)) - 1
        player_id, name = players[min(zipf_index, len(players) - 1)]

        # Roughly one run in five ends without a recorded time
        run_time = 0 if random.random() < 0.2 else round(random.uniform(15, 600), 1)

        submit_run(session, RunSubmission(
            player_id=player_id,
            name=name,
            score=random.randint(0, 5000),
            time=run_time,
            level=random.randint(1, 20),
            game=random.choice(settings.supported_games),
        ))

        if i % 500 == 0 or i == total_runs:
            elapsed = time.time() - start_time
            rate = i / elapsed if elapsed > 0 else 0
            print(f"Progress: {i / total_runs * 100:.1f}% ({i:,}/{total_runs:,}) - {rate:.0f} runs/sec")

    print(f"\n✓ Submitted {total_runs:,} runs in {time.time() - start_time:.2f} seconds")


def print_statistics(session):
    print("\n" + "=" * 60)
    print("DATABASE STATISTICS")
    print("=" * 60)
    print(f"Total Runs: {session.query(Run).count():,}")
    print(f"Total Players: {session.query(Player).count():,}")

    print("\nTop 5 Players:")
    top = session.query(Player).order_by(Player.best_score.desc()).limit(5).all()
    for idx, player in enumerate(top, 1):
        print(f"  {idx}. {player.name or player.player_id}: {player.best_score:,.0f} points")
    print("=" * 60)


def main():
    parser = argparse.ArgumentParser(description="Seed ArcadeBoard with synthetic runs")
    parser.add_argument("--players", type=int, default=200)
    parser.add_argument("--runs", type=int, default=5000)
    args = parser.parse_args()

    print("=" * 60)
    print("ARCADEBOARD SEED SCRIPT")
    print(f"Database: {settings.database_url}")
    print("=" * 60)

    init_db()
    session = SessionLocal()
    try:
        players = generate_players(args.players)
        generate_runs(session, players, args.runs)
        print_statistics(session)
    except Exception as e:
        print(f"\n✗ Error during seeding: {e}")
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
