"""
Tournament CLI Commands

Tournament management: list, transition
"""
import logging
from typing import Optional

from sqlalchemy import select

from tournament_hub.cli.base import BaseCommand
from tournament_hub.errors import ErrorCode
from tournament_hub.exceptions import NotFound, TournamentHubError
from tournament_hub.orm.tournament import Tournament
from tournament_hub.state_machines.tournament_state import TournamentAction, TournamentStatus

logger = logging.getLogger(__name__)

# Operator-driven lifecycle actions. Approval stays with faculty over HTTP.
TRANSITION_ACTIONS = [
    TournamentAction.REVISE.value,
    TournamentAction.CLOSE_REGISTRATION.value,
    TournamentAction.START.value,
    TournamentAction.COMPLETE.value,
    TournamentAction.CANCEL.value,
]


class TournamentCommand(BaseCommand):
    """Tournament CLI command handler."""

    def execute(self, args) -> int:
        """Execute tournament command."""
        if args.tournament_action == "list":
            return self._list(args)
        elif args.tournament_action == "transition":
            return self._transition(args)
        print("Error: Unknown tournament action")
        return 1

    def _list(self, args) -> int:
        """List tournaments."""
        print("=== Tournaments ===")
        rows = self.run(self._async_list, args.status)

        if not rows:
            print("No tournaments found")
            return 0

        print(f"\n{'ID':<5} {'Name':<40} {'Status':<20} {'Teams':<7}")
        print("-" * 75)
        for tournament_id, name, status, teams in rows:
            print(f"{tournament_id:<5} {name[:38]:<40} {status:<20} {teams:<7}")
        return 0

    async def _async_list(self, engine, status: Optional[str] = None):
        async with self.session_factory(engine)() as session:
            query = select(Tournament).order_by(Tournament.id)
            if status:
                query = query.where(Tournament.status == TournamentStatus(status))
            result = await session.execute(query)
            return [
                (t.id, t.name, t.status.value, f"{t.team_count}/{t.max_teams}")
                for t in result.scalars().all()
            ]

    def _transition(self, args) -> int:
        action = TournamentAction(args.action)
        print(f"=== Tournament {args.id}: {action.value} ===")

        if self.dry_run:
            print(f"[DRY RUN] Would apply {action.value} to tournament {args.id}")
            return 0

        try:
            previous, current = self.run(self._async_transition, args.id, action, args.winner)
        except TournamentHubError as e:
            print(f"Error: {e.message}")
            return 1

        print(f"✓ Tournament {args.id}: {previous} -> {current}")
        return 0

    async def _async_transition(self, engine, tournament_id: int, action: TournamentAction, winner: Optional[str]):
        async with self.session_factory(engine)() as session:
            tournament = await session.get(Tournament, tournament_id)
            if tournament is None:
                raise NotFound("Tournament", code=ErrorCode.TOURNAMENT_NOT_FOUND)

            previous = tournament.status.value
            if action == TournamentAction.COMPLETE:
                tournament.complete(winner_team_name=winner)
            else:
                getattr(tournament, action.value)()
            await session.commit()

            logger.info(f"Tournament {tournament_id}: {previous} -> {tournament.status.value} (cli)")
            return previous, tournament.status.value
