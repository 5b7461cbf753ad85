#!/usr/bin/env python3
"""
Tournament Hub operator CLI

Usage:
    python -m tournament_hub.cli <command> [options]

Commands:
    db          Database operations (init)
    user        Identity operations (create, activate, deactivate)
    tournament  Tournament operations (list, transition)

Environment:
    DATABASE_URL    Async SQLAlchemy URL (overridden by --database-url)
    LOG_LEVEL       DEBUG|INFO|WARNING|ERROR
"""
import sys
import argparse
import logging
from typing import Optional

from tournament_hub.cli.db_commands import DbCommand
from tournament_hub.cli.tournament_commands import TournamentCommand, TRANSITION_ACTIONS
from tournament_hub.cli.user_commands import UserCommand
from tournament_hub.orm.user import Department, SecondaryRole, UserRole
from tournament_hub.state_machines.tournament_state import TournamentStatus


def setup_logging(level: str = "INFO") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="tournament-hub",
        description="College tournament backend operator CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s db init
  %(prog)s user create --email admin@college.edu --password secret1 --college-id ADM00001 \\
      --full-name "Site Admin" --department CSE --year 5 --role admin
  %(prog)s user deactivate --email someone@college.edu
  %(prog)s tournament list --status pending_approval
  %(prog)s tournament transition --id 42 --action close_registration
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0"
    )

    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)"
    )

    parser.add_argument(
        "--database-url",
        default=None,
        help="Database URL (default: DATABASE_URL from the environment)"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without executing"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Database commands
    db_parser = subparsers.add_parser("db", help="Database operations")
    db_subparsers = db_parser.add_subparsers(dest="db_action")
    db_subparsers.add_parser("init", help="Create all tables that do not exist")

    # User commands
    user_parser = subparsers.add_parser("user", help="Identity operations")
    user_subparsers = user_parser.add_subparsers(dest="user_action")

    user_create_parser = user_subparsers.add_parser("create", help="Create an identity with any role")
    user_create_parser.add_argument("--email", required=True)
    user_create_parser.add_argument("--password", required=True)
    user_create_parser.add_argument("--college-id", required=True)
    user_create_parser.add_argument("--full-name", required=True)
    user_create_parser.add_argument("--department", required=True, choices=[d.value for d in Department])
    user_create_parser.add_argument("--year", type=int, required=True, help="Year of study (1-5)")
    user_create_parser.add_argument("--role", default=UserRole.student.value, choices=[r.value for r in UserRole])
    user_create_parser.add_argument(
        "--secondary-role",
        action="append",
        default=[],
        choices=[r.value for r in SecondaryRole],
        help="Secondary role (repeatable)"
    )

    deactivate_parser = user_subparsers.add_parser("deactivate", help="Deactivate an identity")
    deactivate_parser.add_argument("--email", required=True)

    activate_parser = user_subparsers.add_parser("activate", help="Reactivate an identity")
    activate_parser.add_argument("--email", required=True)

    # Tournament commands
    tournament_parser = subparsers.add_parser("tournament", help="Tournament operations")
    tournament_subparsers = tournament_parser.add_subparsers(dest="tournament_action")

    list_parser = tournament_subparsers.add_parser("list", help="List tournaments")
    list_parser.add_argument("--status", choices=[s.value for s in TournamentStatus], help="Filter by status")

    transition_parser = tournament_subparsers.add_parser("transition", help="Apply a lifecycle action")
    transition_parser.add_argument("--id", type=int, required=True, help="Tournament ID")
    transition_parser.add_argument("--action", required=True, choices=TRANSITION_ACTIONS)
    transition_parser.add_argument("--winner", default=None, help="Winning team name (complete only)")

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if not parsed.command:
        parser.print_help()
        return 1

    setup_logging(parsed.log_level)

    command_map = {
        "db": DbCommand,
        "user": UserCommand,
        "tournament": TournamentCommand,
    }

    if parsed.command in command_map:
        handler = command_map[parsed.command](dry_run=parsed.dry_run, database_url=parsed.database_url)
        return handler.execute(parsed)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
