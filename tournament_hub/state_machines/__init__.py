from .tournament_state import (
    TournamentStatus,
    TournamentAction,
    TRANSITIONS,
    TERMINAL_STATES,
    PUBLIC_STATES,
    initial_status,
    can_transition,
    allowed_actions,
    next_status,
)
