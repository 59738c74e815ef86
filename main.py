"""
Maamulat — daily spiritual habit tracker.
Entry point for the command-line front end.
"""

import argparse
import faulthandler
import logging
import signal
import sys
from pathlib import Path

faulthandler.enable()

# Ensure the package is importable when run from a checkout
sys.path.insert(0, str(Path(__file__).resolve().parent))

from PySide6.QtCore import QCoreApplication

from maamulat.app import MaamulatApp
from maamulat.config import load_config
from maamulat.data.catalog import LEVEL_SUMMARIES, LEVELS
from maamulat.services.rewards import format_hasanat


def setup_logging(config: dict) -> None:
    logging.basicConfig(
        level=getattr(logging, str(config.get("log_level", "INFO")).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(config["log_file"], encoding="utf-8"),
        ],
    )


def _describe_level(level: str) -> str:
    s = LEVEL_SUMMARIES[level]
    return f"{s['title']} ({s['title_ur']}): {s['description']}, {s['est_time']}"


def _level_epilog() -> str:
    return "levels:\n" + "\n".join(f"  {lvl:<13} {_describe_level(lvl)}" for lvl in LEVELS)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="maamulat", description="Daily maamulat tracker")
    parser.add_argument("--config", type=Path, help="path to a JSON config file")
    parser.add_argument("--db", help="SQLite database path (overrides config)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="today's progress and streak")
    sub.add_parser("tasks", help="list today's tasks")

    toggle = sub.add_parser("toggle", help="tick or untick a task")
    toggle.add_argument("category")
    toggle.add_argument("item")
    toggle.add_argument("--alone", action="store_true", help="prayed alone, not in congregation")

    set_time = sub.add_parser("set-time", help="log a sleep/wake time")
    set_time.add_argument("category")
    set_time.add_argument("item")
    set_time.add_argument("time", help="HH:MM")

    level = sub.add_parser("level", help="switch level (replaces today's tasks)",
                           epilog=_level_epilog(),
                           formatter_class=argparse.RawDescriptionHelpFormatter)
    level.add_argument("level", choices=LEVELS)

    sub.add_parser("achievements", help="evaluate and list achievements")
    sub.add_parser("history", help="completion history summary")
    sub.add_parser("dismiss-alert", help="acknowledge a broken streak")
    sub.add_parser("reset-chillah", help="restart the 40-day counter")
    sub.add_parser("run", help="stay running and reset at midnight")
    return parser


def _print_tasks(app: MaamulatApp) -> None:
    for cat in app.completion.categories:
        print(f"[{cat.id}] {cat.name_en or cat.name}")
        for item in cat.items:
            mark = "x" if item.completed else " "
            extra = f" {item.time_value}" if item.time_value else ""
            print(f"  [{mark}] {item.id}: {item.name_en or item.name}{extra}")


def _run_loop(app: MaamulatApp, qt_app: QCoreApplication) -> int:
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    app.rollover.arm()
    logging.getLogger(__name__).info("Waiting for midnight rollovers (Ctrl+C to quit).")
    return qt_app.exec()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    if args.db:
        config["db_path"] = args.db
    setup_logging(config)
    logger = logging.getLogger(__name__)

    # timers need a Qt core application, even for one-shot commands
    qt_app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app = MaamulatApp.from_config(config)
    try:
        result = app.start()
        if result.streak_broken:
            print("Your streak was broken. Start again today!")

        if args.command == "status":
            for key, value in app.status().items():
                print(f"{key:>15}: {value}")
        elif args.command == "tasks":
            _print_tasks(app)
        elif args.command == "toggle":
            if app.completion.find_item(args.category, args.item) is None:
                print("No such task.")
                return 1
            earned = app.toggle_item(args.category, args.item, in_congregation=not args.alone)
            print(f"+{earned} hasanat" if earned else "Updated.")
        elif args.command == "set-time":
            if not app.set_item_time(args.category, args.item, args.time):
                print("No such task.")
                return 1
        elif args.command == "level":
            app.change_level(args.level)
            print(f"Level set to {args.level}.")
            print(_describe_level(args.level))
        elif args.command == "achievements":
            for a in app.check_achievements():
                print(f"Unlocked: {a.name}")
            for a in app.achievements.achievements:
                mark = "x" if a.unlocked else " "
                print(f"  [{mark}] {a.name} ({a.target})")
        elif args.command == "history":
            for key, value in app.history.summary().items():
                print(f"{key:>20}: {value}")
            print(f"{'total_hasanat':>20}: {format_hasanat(app.streak.progress.total_hasanat)}")
        elif args.command == "dismiss-alert":
            app.streak.dismiss_streak_alert()
        elif args.command == "reset-chillah":
            app.streak.reset_chillah()
        elif args.command == "run":
            return _run_loop(app, qt_app)
        return 0
    finally:
        app.shutdown()
        logger.debug("Shutdown complete.")


if __name__ == "__main__":
    sys.exit(main())
