import argparse
import csv
import json
import logging
import os
import sys
from typing import Optional

import yaml

from config import load_settings
from exercise_library import ExerciseLibrary
from localization import translator
from models import LoggedSession, PercentageProgression
from progression_service import ProgressionService
from seed_sample_data import seed
from stats_service import StatisticsService

logger = logging.getLogger(__name__)


def load_data(path: str):
    """Read a JSON or YAML document from ``path``."""
    with open(path, "r", encoding="utf-8") as f:
        if path.endswith(".json"):
            return json.load(f)
        return yaml.safe_load(f)


def load_sessions(path: str) -> list[LoggedSession]:
    data = load_data(path) or []
    return [LoggedSession(**item) for item in data]


def load_library(path: Optional[str]) -> ExerciseLibrary:
    if path is None:
        return ExerciseLibrary()
    return ExerciseLibrary(load_data(path) or [])


def show_progression(path: str, service: ProgressionService) -> int:
    progression = PercentageProgression(**load_data(path))
    result = service.validate_progression(progression)
    if not result.valid:
        for err in result.errors:
            print(f"error: {err}", file=sys.stderr)
        return 1
    for week, blocks in service.expand_progression(progression).items():
        parts = ", ".join(
            f"{b.sets}x{b.reps} @{b.percentage:g}% = {b.load_kg:g} kg" for b in blocks
        )
        print(f"{translator.gettext('Week')} {week}: {parts}")
    return 0


def validate_files(
    library_path: Optional[str],
    progression_path: Optional[str],
    service: ProgressionService,
) -> int:
    errors: list[str] = []
    if library_path:
        errors.extend(load_library(library_path).validate())
    if progression_path:
        progression = PercentageProgression(**load_data(progression_path))
        errors.extend(service.validate_progression(progression).errors)
    for err in errors:
        print(f"error: {err}", file=sys.stderr)
    if not errors:
        print("ok")
    return 1 if errors else 0


def show_volume(
    sessions: list[LoggedSession], library: ExerciseLibrary, stats: StatisticsService
) -> None:
    volume = stats.volume_by_muscle(sessions, library)
    for muscle in sorted(volume):
        print(f"{muscle}: {volume[muscle]:.1f}")


def show_weekly(
    sessions: list[LoggedSession], library: ExerciseLibrary, stats: StatisticsService
) -> None:
    df = stats.volume_by_week_and_muscle(sessions, library)
    if df.empty:
        print("no sessions")
        return
    table = df.pivot(index="week", columns="muscle", values="volume").fillna(0.0)
    print(table.round(1).to_string())


def export_sessions(sessions: list[LoggedSession], out_path: str) -> None:
    """Write one CSV row per logged set."""
    fields = [
        "date",
        "program_id",
        "week_num",
        "exercise",
        "technique",
        "set_num",
        "cluster_num",
        "reps",
        "load",
        "rpe",
        "completion",
    ]
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fields)
        writer.writeheader()
        for s in sorted(sessions, key=lambda x: x.date):
            for x in s.sets:
                writer.writerow(
                    {
                        "date": s.date.isoformat(),
                        "program_id": s.program_id,
                        "week_num": s.week_num,
                        "exercise": s.exercise,
                        "technique": s.technique,
                        "set_num": x.set_num,
                        "cluster_num": x.cluster_num,
                        "reps": x.reps,
                        "load": x.load,
                        "rpe": x.rpe,
                        "completion": round(s.completion, 1),
                    }
                )
    logger.info("exported %d sessions to %s", len(sessions), out_path)


def demo(stats: StatisticsService) -> None:
    library, programs, sessions = seed()
    print(f"{len(programs)} programs, {len(sessions)} sessions")
    show_weekly(sessions, library, stats)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Training block utilities")
    parser.add_argument("--settings", default=None, help="settings YAML file")
    parser.add_argument("--log-level", default=os.environ.get("LOG_LEVEL", "WARNING"))
    sub = parser.add_subparsers(dest="cmd", required=True)

    prog = sub.add_parser("progression")
    prog.add_argument("file")

    val = sub.add_parser("validate")
    val.add_argument("--library")
    val.add_argument("--progression")

    vol = sub.add_parser("volume")
    vol.add_argument("sessions")
    vol.add_argument("--library")

    weekly = sub.add_parser("weekly")
    weekly.add_argument("sessions")
    weekly.add_argument("--library")

    exp = sub.add_parser("export")
    exp.add_argument("sessions")
    exp.add_argument("--out", default="sessions.csv")

    sub.add_parser("demo")

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())

    settings = load_settings(args.settings)
    translator.set_language(settings.language)
    progression = ProgressionService(settings)
    stats = StatisticsService(settings)

    if args.cmd == "progression":
        return show_progression(args.file, progression)
    if args.cmd == "validate":
        return validate_files(args.library, args.progression, progression)
    if args.cmd == "volume":
        show_volume(load_sessions(args.sessions), load_library(args.library), stats)
    elif args.cmd == "weekly":
        show_weekly(load_sessions(args.sessions), load_library(args.library), stats)
    elif args.cmd == "export":
        export_sessions(load_sessions(args.sessions), args.out)
    elif args.cmd == "demo":
        demo(stats)
    return 0


if __name__ == "__main__":
    sys.exit(main())
