"""
Court Queue - command-line front end.

Each invocation restores the saved state, runs one command and saves the
result.

Usage:
    python -m courtqueue.main add-player "Alex" --category female --tier intermediate
    python -m courtqueue.main add-court
    python -m courtqueue.main fill
    python -m courtqueue.main assign 0 c_1a2b3c4d
    python -m courtqueue.main end c_1a2b3c4d
    python -m courtqueue.main show
"""
import argparse
import sys
import time

from courtqueue.config import Settings
from courtqueue.domain.queue.models import GROUP_SIZE, Category, Outcome, Tier
from courtqueue.domain.queue.service import QueueService
from courtqueue.domain.queue.store import EntityStore
from courtqueue.exceptions import CourtQueueError
from courtqueue.logging_config import get_logger, setup_logging

logger = get_logger(__name__)

START_HINT = (
    "Auto-fill is armed until this command exits. "
    "Set AUTO_FILL=true to refill after every command."
)


def format_duration(seconds: float | None) -> str:
    """Format elapsed seconds as m:ss."""
    if not seconds:
        return ""
    total = int(seconds)
    return f"{total // 60}:{total % 60:02d}"


def print_state(store: EntityStore, now: float | None = None) -> None:
    """Print players, ready groups and courts."""
    now = now if now is not None else time.time()
    names = {p.id: p.name for p in store.participants}

    print("=" * 60)
    print("PLAYERS")
    print("=" * 60)
    if not store.participants:
        print("  (none)")
    for p in store.participants:
        print(f"  {p.id}  {p.name:<20} {p.tier.value:<12} {p.status.value:<7} • {p.sessions}")
    print()

    print("READY GROUPS")
    print("-" * 60)
    for idx, group in enumerate(store.groups):
        members = ", ".join(names.get(pid, "?") for pid in group) or "(empty)"
        print(f"  [{idx}] {len(group)}/{GROUP_SIZE}  {members}")
    print()

    print("COURTS")
    print("-" * 60)
    if not store.stations:
        print("  (none)")
    for station in store.stations:
        if station.is_idle:
            print(f"  {station.id}  {station.name:<12} Idle")
        else:
            players = ", ".join(names.get(pid, "?") for pid in station.occupants)
            print(f"  {station.id}  {station.name:<12} {format_duration(station.elapsed(now)):>6}  {players}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Court Queue - rotate players through courts in groups of four"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    add_player = commands.add_parser("add-player", help="Register a player in the pool")
    add_player.add_argument("name")
    add_player.add_argument("--category", choices=[c.value for c in Category], default=Category.MALE.value)
    add_player.add_argument("--tier", choices=[t.value for t in Tier], default=Tier.NOVICE.value)

    edit_player = commands.add_parser("edit-player", help="Change a player's details")
    edit_player.add_argument("participant_id")
    edit_player.add_argument("--name")
    edit_player.add_argument("--category", choices=[c.value for c in Category])
    edit_player.add_argument("--tier", choices=[t.value for t in Tier])

    delete_player = commands.add_parser("delete-player", help="Remove a player everywhere")
    delete_player.add_argument("participant_id")

    promote = commands.add_parser("promote", help="Move a pool player into the first open group")
    promote.add_argument("participant_id")

    commands.add_parser("fill", help="Fill every group from the pool")
    commands.add_parser(
        "start",
        help="Fill every group now. Auto-fill stays armed for this run only; "
        "set AUTO_FILL=true to keep it armed across commands",
    )
    commands.add_parser("add-group", help="Append an empty ready group")

    remove_group = commands.add_parser("remove-group", help="Delete a ready group")
    remove_group.add_argument("group_index", type=int)

    swap = commands.add_parser("swap", help="Swap a group member with a pool player")
    swap.add_argument("group_index", type=int)
    swap.add_argument("slot_index", type=int)
    swap.add_argument("pool_participant_id")

    add_court = commands.add_parser("add-court", help="Add an idle court")
    add_court.add_argument("--name")

    remove_court = commands.add_parser("remove-court", help="Remove a court, finishing its game")
    remove_court.add_argument("station_id")

    assign = commands.add_parser("assign", help="Send a full group to an idle court")
    assign.add_argument("group_index", type=int)
    assign.add_argument("station_id")

    end = commands.add_parser("end", help="Finish the game on a court")
    end.add_argument("station_id")

    pool = commands.add_parser("pool", help="List pool players")
    pool.add_argument("--search", default="")

    commands.add_parser("show", help="Print the full state")
    return parser


def run_command(service: QueueService, args: argparse.Namespace) -> Outcome:
    """Dispatch one parsed command. Raises CourtQueueError on invalid input."""
    command = args.command

    if command == "add-player":
        participant = service.create_participant(args.name, args.category, args.tier)
        print(f"Added {participant.name} ({participant.id})")
        return Outcome.ok()
    if command == "edit-player":
        return service.edit_participant(
            args.participant_id, name=args.name, category=args.category, tier=args.tier
        )
    if command == "delete-player":
        return service.delete_participant(args.participant_id)
    if command == "promote":
        return service.promote(args.participant_id)
    if command == "fill":
        return service.fill_all()
    if command == "start":
        if not service.armed:
            print(START_HINT)
        return service.start()
    if command == "add-group":
        return service.create_group()
    if command == "remove-group":
        return service.remove_group(args.group_index)
    if command == "swap":
        return service.swap_member(args.group_index, args.slot_index, args.pool_participant_id)
    if command == "add-court":
        station = service.create_station(args.name)
        print(f"Added {station.name} ({station.id})")
        return Outcome.ok()
    if command == "remove-court":
        return service.remove_station(args.station_id)
    if command == "assign":
        return service.assign_group(args.group_index, args.station_id)
    if command == "end":
        return service.end_session(args.station_id)
    if command == "pool":
        for p in service.search_pool(args.search):
            print(f"  {p.id}  {p.name:<20} {p.tier.value:<12} • {p.sessions}")
        return Outcome.ok()

    print_state(service.store)
    return Outcome.ok()


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    settings = Settings()
    log_level = "DEBUG" if args.verbose else settings.log_level
    setup_logging(log_level, json_console=settings.json_logs)

    service = QueueService.from_settings(settings)

    try:
        outcome = run_command(service, args)
    except CourtQueueError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2

    if not outcome:
        print(f"Not done: {outcome.reason.value}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
