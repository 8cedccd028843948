"""
Static squad definitions and lookup. The roster only changes through
replace_roster, which keeps the same three team ids.
"""
from __future__ import annotations

from typing import Any, Iterable

from turfkings.models import Pairing, Team
from turfkings.services.validation import ValidationError

TEAM_COUNT = 3

DEFAULT_TEAMS: tuple[Team, ...] = (
    Team(
        id="team-enoch",
        label="Team-Enoch",
        captain="Enoch",
        players=("Enoch", "Uhone", "Mark", "Barlo", "Nkumbuzo", "Munya"),
    ),
    Team(
        id="team-mdu",
        label="Team-Mdu",
        captain="Mdu",
        players=("Mdu", "Scott", "Chad", "Taku", "Josh", "Humbu"),
    ),
    Team(
        id="team-nk",
        label="Team-NK",
        captain="Nkululeko",
        players=("Nkululeko", "Zizou", "Dayaan", "Dr Babs", "Kolobe", "Anathi"),
    ),
)


def get_team_by_id(teams: Iterable[Team], team_id: str) -> Team | None:
    return next((t for t in teams if t.id == team_id), None)


def validate_roster(teams: Iterable[Team]) -> tuple[Team, ...]:
    """Exactly three teams, unique ids, unique players per team, captain in the squad."""
    roster = tuple(teams)
    if len(roster) != TEAM_COUNT:
        raise ValidationError(f"Roster must have exactly {TEAM_COUNT} teams (got {len(roster)})")
    ids = [t.id for t in roster]
    if len(set(ids)) != len(ids):
        raise ValidationError(f"Team ids must be unique: {ids}")
    for t in roster:
        if not t.players:
            raise ValidationError(f"{t.label} has no players")
        if len(set(t.players)) != len(t.players):
            raise ValidationError(f"{t.label} lists a player twice")
        if t.captain not in t.players:
            raise ValidationError(f"Captain {t.captain} is not in {t.label}")
    return roster


def replace_roster(current: Iterable[Team], new_teams: Iterable[Team]) -> tuple[Team, ...]:
    """Swap in renamed/reshuffled squads. Team ids must stay the same set."""
    roster = validate_roster(new_teams)
    old_ids = sorted(t.id for t in current)
    new_ids = sorted(t.id for t in roster)
    if old_ids != new_ids:
        raise ValidationError(f"Roster replace must keep team ids {old_ids} (got {new_ids})")
    return roster


def initial_pairing(teams: Iterable[Team]) -> Pairing:
    """First listed team in slot A, second in slot B, third on standby."""
    a, b, standby = (t.id for t in teams)
    return Pairing(team_a_id=a, team_b_id=b, standby_id=standby)


def teams_from_dicts(items: Iterable[dict[str, Any]]) -> tuple[Team, ...]:
    return validate_roster(Team.from_dict(d) for d in items)
