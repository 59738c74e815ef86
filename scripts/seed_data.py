"""
Seed Data Generator — simulates weeks of daily use for development.

Walks a fake clock forward one day at a time and ticks a random share of
tasks, so streaks, chillah days, history and achievements all get data.

Run: python scripts/seed_data.py [days]
"""

import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from PySide6.QtCore import QCoreApplication

from maamulat.app import MaamulatApp
from maamulat.config import load_config
from maamulat.data.database import Database
from maamulat.data.repository import Repository


class SimulatedClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now


def seed(num_days: int = 30) -> None:
    config = load_config()
    db = Database(Path(config["db_path"]))
    repo = Repository(db.connect())
    repo.reset_all_data()

    clock = SimulatedClock(datetime.now().replace(hour=9, minute=0) - timedelta(days=num_days))
    app = MaamulatApp(repo, clock=clock, default_level="intermediate")

    for day in range(num_days):
        app.rollover.ensure_day_rollover()

        # Skip roughly one day in ten entirely
        if random.random() < 0.1:
            clock.now += timedelta(days=1)
            continue

        effort = random.uniform(0.3, 1.0)
        for cat in app.completion.categories:
            for item in cat.items:
                if random.random() > effort:
                    continue
                if item.is_time:
                    hour = random.randint(4, 6) if item.id == "wake-time" else random.randint(21, 23)
                    app.set_item_time(cat.id, item.id, f"{hour:02d}:{random.randint(0, 59):02d}")
                else:
                    app.toggle_item(cat.id, item.id, in_congregation=random.random() < 0.7)

        app.check_achievements()
        clock.now += timedelta(days=1)

    status = app.status()
    print(f"Seeded {num_days} days: streak {status['streak']}, "
          f"hasanat {status['total_hasanat']}, chillah day {status['chillah_day']}.")
    db.close()


if __name__ == "__main__":
    _qt_app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    seed(int(sys.argv[1]) if len(sys.argv) > 1 else 30)
