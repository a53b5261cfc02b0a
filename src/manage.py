"""Dining management CLI.

Database schema management plus the operational commands staff run by hand
or from a scheduler.

Usage:
    python src/manage.py setup-db                       # Create all tables
    python src/manage.py drop-db                        # Drop all tables
    python src/manage.py generate-slots 10:00 22:00     # Hourly time slots
    python src/manage.py check-reservations --dry-run --detailed
"""

import argparse
import sys
from datetime import datetime


def _domain():
    from dining.domain import dining

    dining.init()
    return dining


def setup_database():
    from dining.utils.db import setup_db

    domain = _domain()
    print("Creating dining database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    from dining.utils.db import drop_db

    domain = _domain()
    print("Dropping dining database schema...")
    drop_db(domain)
    print("Done.")


def generate_slots(start_time, end_time, interval_minutes):
    from dining.timeslot.generation import GenerateTimeSlots

    domain = _domain()
    with domain.domain_context():
        created = domain.process(
            GenerateTimeSlots(start_time=start_time, end_time=end_time, interval_minutes=interval_minutes),
            asynchronous=False,
        )
    print(f"Created {created} time slot(s) between {start_time} and {end_time}.")


def check_reservations(dry_run=False, detailed=False, as_of=None):
    from dining.order.expiry import ProcessExpiredReservations, SweepAction

    domain = _domain()
    with domain.domain_context():
        outcomes = domain.process(
            ProcessExpiredReservations(as_of=as_of, dry_run=dry_run),
            asynchronous=False,
        )

    if dry_run:
        print("DRY RUN: no changes were saved.")

    extended = [o for o in outcomes if o.action == SweepAction.EXTENDED]
    flagged = [o for o in outcomes if o.action == SweepAction.FLAGGED]
    print(f"Overdue reservations processed: {len(outcomes)}")
    print(f"  auto-extended: {len(extended)}")
    print(f"  flagged for staff: {len(flagged)}")

    if detailed and outcomes:
        print()
        print(f"{'ORDER':<24} {'TABLE':<8} {'ACTION':<9} {'EXT':>3} {'UNTIL':<17} REASON")
        for outcome in outcomes:
            until = outcome.reserved_until.strftime("%Y-%m-%d %H:%M") if outcome.reserved_until else "-"
            print(
                f"{outcome.order_number:<24} {outcome.table_code or '-':<8} {outcome.action:<9} "
                f"{outcome.auto_extend_count:>3} {until:<17} {outcome.reason or ''}"
            )


def main():
    parser = argparse.ArgumentParser(description="Dining management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    slots_parser = subparsers.add_parser("generate-slots", help="Create missing fixed time slots")
    slots_parser.add_argument("start", help="Opening time, HH:MM")
    slots_parser.add_argument("end", help="Closing time, HH:MM")
    slots_parser.add_argument("--interval", type=int, default=60, help="Slot length in minutes (default: 60)")

    check_parser = subparsers.add_parser("check-reservations", help="Extend or flag overdue table reservations")
    check_parser.add_argument("--dry-run", action="store_true", help="Report actions without saving them")
    check_parser.add_argument("--detailed", action="store_true", help="Print one line per reservation")
    check_parser.add_argument(
        "--as-of",
        type=datetime.fromisoformat,
        default=None,
        help="Evaluate as of this local time (ISO format, default: now)",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "generate-slots":
        generate_slots(args.start, args.end, args.interval)
    elif args.command == "check-reservations":
        check_reservations(dry_run=args.dry_run, detailed=args.detailed, as_of=args.as_of)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
