"""
Command line entry point for the scheduling engine.

Usage:
  python cli.py slots DOCTOR_ID 2024-07-08
  python cli.py slots DOCTOR_ID 2024-07-08 --days 7
  python cli.py slots DOCTOR_ID 2024-07-08 --after 13:00
  python cli.py leave-summary DOCTOR_ID --as-of 2024-07-01
  python cli.py --snapshot doctor.json slots DOCTOR_ID 2024-07-08

``--snapshot`` loads a JSON document with "profile", "breaks", "leaves" and
"appointments" keys into the configured store before running the command,
which makes the in-memory backend usable for batch jobs.
"""

import argparse
import asyncio
import json
import sys
from datetime import date, time, timedelta
from pathlib import Path
from typing import List, Optional

from config import settings
from db import get_repositories
from db.base import LedgerRepository, ScheduleRepository
from models.appointment import Appointment
from models.leave import LeaveRange
from models.schedule import BreakInterval, DoctorProfile
from scheduling import SchedulingEngine, get_engine
from utils.datetime_utils import parse_clock, parse_local_date
from utils.exceptions import SchedulingError
from utils.logging_config import get_logger

logger = get_logger(__name__, log_file="cli.log", log_dir=settings.log_dir)


async def load_snapshot(
    path: Path, schedule: ScheduleRepository, ledger: LedgerRepository
) -> str:
    """Load a doctor snapshot file into the repositories. Returns the doctor id."""
    data = json.loads(path.read_text(encoding="utf-8"))

    profile = DoctorProfile.model_validate(data["profile"])
    await schedule.save_profile(profile)
    for item in data.get("breaks", []):
        await schedule.insert_break(
            BreakInterval.model_validate({"doctor_id": profile.doctor_id, **item})
        )
    for item in data.get("leaves", []):
        await schedule.insert_leave(
            LeaveRange.model_validate({"doctor_id": profile.doctor_id, **item})
        )
    for item in data.get("appointments", []):
        await ledger.insert(
            Appointment.model_validate({"doctor_id": profile.doctor_id, **item})
        )

    logger.info(f"Loaded snapshot for doctor {profile.doctor_id} from {path}")
    return profile.doctor_id


async def show_slots(
    engine: SchedulingEngine,
    doctor_id: str,
    start: date,
    days: int,
    after: Optional[time] = None,
) -> List[str]:
    lines = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        result = await engine.availability.generate(doctor_id, day)
        if result.unavailable:
            lines.append(f"{day.isoformat()} {result.reason.value}")
            continue
        slots = [s for s in result.slots if after is None or s.start >= after]
        windows = ", ".join(
            f"{s.start.strftime('%H:%M')}-{s.end.strftime('%H:%M')}" for s in slots
        )
        lines.append(f"{day.isoformat()} {len(slots)} {windows}".rstrip())
    return lines


async def show_leave_summary(
    engine: SchedulingEngine, doctor_id: str, as_of: date
) -> List[str]:
    summary = await engine.leaves.summarize(doctor_id, as_of)
    return [summary.model_dump_json(indent=2)]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Doctor availability engine")
    parser.add_argument(
        "--snapshot",
        type=Path,
        default=None,
        help="JSON snapshot to load into the store before running",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    slots = commands.add_parser("slots", help="List bookable slots")
    slots.add_argument("doctor_id")
    slots.add_argument("date", type=parse_local_date, help="YYYY-MM-DD")
    slots.add_argument("--days", type=int, default=1, help="Number of days to list")
    slots.add_argument(
        "--after", type=parse_clock, default=None, help="Only slots starting at or after HH:MM"
    )

    summary = commands.add_parser("leave-summary", help="Summarize leave ranges")
    summary.add_argument("doctor_id")
    summary.add_argument(
        "--as-of",
        type=parse_local_date,
        default=None,
        help="Reference date (YYYY-MM-DD), defaults to today",
    )
    return parser


async def run(args: argparse.Namespace) -> List[str]:
    engine = get_engine()
    if args.snapshot:
        schedule, ledger = get_repositories()
        await load_snapshot(args.snapshot, schedule, ledger)

    if args.command == "slots":
        return await show_slots(
            engine, args.doctor_id, args.date, max(args.days, 1), args.after
        )
    return await show_leave_summary(
        engine, args.doctor_id, args.as_of or date.today()
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings.validate_all_required()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    try:
        lines = asyncio.run(run(args))
    except SchedulingError as e:
        logger.error(f"{e.code}: {e}")
        return 2

    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
