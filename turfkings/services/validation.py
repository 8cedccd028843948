"""
Shared checks for pairings, scores and scoring events.
Raised before any state changes; callers must fix their input and retry.
"""
from __future__ import annotations

from typing import Any, Iterable

from turfkings.models import EventType, GoalEvent, MatchEvent, Pairing, ShiboboEvent, Team

# ---------- Exceptions ----------


class ValidationError(ValueError):
    """Malformed input: bad pairing, bad goals, or an event that does not fit the roster."""


class ConsistencyError(ValueError):
    """Input disagrees with ledger state: stale match number, pairing or goal tally mismatch."""


# ---------- Pairing & goals ----------


def validate_pairing(pairing: Pairing, team_ids: Iterable[str]) -> None:
    """Pairing must be a permutation of the known team ids."""
    known = sorted(team_ids)
    slots = list(pairing.team_ids())
    if len(set(slots)) != len(slots):
        raise ValidationError(f"Pairing repeats a team: {slots}")
    if sorted(slots) != known:
        raise ValidationError(f"Pairing {slots} must use exactly the teams {known}")


def validate_goals(goals: Any, side: str) -> int:
    # bool is an int subclass; a True score is a caller bug
    if isinstance(goals, bool) or not isinstance(goals, int):
        raise ValidationError(f"{side} must be an integer (got {goals!r})")
    if goals < 0:
        raise ValidationError(f"{side} must be non-negative (got {goals})")
    return goals


# ---------- Events ----------


def validate_event(event: MatchEvent, teams_by_id: dict[str, Team], on_field: tuple[str, ...]) -> None:
    """Scorer (and assist) must be on the roster of the event's team, and that team must be playing."""
    if event.team_id not in teams_by_id:
        raise ValidationError(f"Unknown team: {event.team_id}")
    if event.team_id not in on_field:
        raise ValidationError(f"Team {event.team_id} is not on the field")
    team = teams_by_id[event.team_id]
    if not team.has_player(event.scorer):
        raise ValidationError(f"{event.scorer} is not in {team.label}")
    if isinstance(event, GoalEvent) and event.assist is not None:
        if event.assist == event.scorer:
            raise ValidationError(f"{event.scorer} cannot assist their own goal")
        if not team.has_player(event.assist):
            raise ValidationError(f"{event.assist} is not in {team.label}")
    if isinstance(event.time_seconds, bool) or not isinstance(event.time_seconds, int) or event.time_seconds < 0:
        raise ValidationError(f"time_seconds must be a non-negative integer (got {event.time_seconds!r})")


def goal_tally(events: Iterable[MatchEvent], team_id: str) -> int:
    return sum(1 for e in events if isinstance(e, GoalEvent) and e.team_id == team_id)


def event_from_dict(d: dict[str, Any]) -> MatchEvent:
    """Rebuild a tagged event from its serialized form."""
    kind = d.get("type")
    common = {
        "id": str(d["id"]),
        "match_no": int(d["match_no"]),
        "team_id": d["team_id"],
        "scorer": d["scorer"],
        "time_seconds": int(d.get("time_seconds", 0)),
    }
    if kind == EventType.GOAL.value:
        return GoalEvent(assist=d.get("assist") or None, **common)
    if kind == EventType.SHIBOBO.value:
        if d.get("assist"):
            raise ValidationError("A shibobo cannot have an assist")
        return ShiboboEvent(**common)
    raise ValidationError(f"Unknown event type: {kind!r}")
