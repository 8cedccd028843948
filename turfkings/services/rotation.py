"""
Winner-stays-on rotation for three teams sharing two on-field slots.

Pure: takes the current form state and the final score of the match on the
field, returns who won, the next pairing and the new form state. Nothing is
mutated; an invalid input raises ValidationError before anything is computed.

Decisive result: winner stays in slot A, standby comes on in slot B, loser
sits out. Draw: the slot-A team has been on longest (winners always move to
slot A), so it goes to standby; slot B moves across to A and the standby team
comes on in slot B.
"""
from __future__ import annotations

from typing import Mapping

from turfkings.models import FormState, MatchOutcome, RotationResult
from turfkings.services.validation import ValidationError, validate_goals, validate_pairing


def classify_outcome(team_a_id: str, team_b_id: str, goals_a: int, goals_b: int) -> tuple[str | None, bool]:
    """Return (winner_id, is_draw). winner_id is None on a draw."""
    if goals_a > goals_b:
        return team_a_id, False
    if goals_b > goals_a:
        return team_b_id, False
    return None, True


def next_pairing(
    team_a_id: str,
    team_b_id: str,
    standby_id: str,
    winner_id: str | None,
    is_draw: bool,
) -> tuple[str, str, str]:
    """(next_a, next_b, next_standby). Always a permutation of the three inputs."""
    if is_draw:
        return team_b_id, standby_id, team_a_id
    if winner_id == team_a_id:
        return team_a_id, standby_id, team_b_id
    if winner_id == team_b_id:
        return team_b_id, standby_id, team_a_id
    raise ValidationError(f"Winner {winner_id} was not on the field")


def updated_streaks(streaks: Mapping[str, int], winner_id: str | None) -> dict[str, int]:
    """Winner's run goes up by one; everyone else (everyone, on a draw) goes back to 0."""
    return {tid: (streaks.get(tid, 0) + 1 if tid == winner_id else 0) for tid in streaks}


def compute_next_from_result(form_state: FormState, outcome: MatchOutcome) -> RotationResult:
    """
    Decide the next pairing from a finished match.
    Known team ids are the keys of form_state.streaks. top_scorer is passed
    through untouched; the ledger derives it from committed events.
    """
    validate_pairing(outcome.pairing, form_state.streaks.keys())
    goals_a = validate_goals(outcome.goals_a, "goals_a")
    goals_b = validate_goals(outcome.goals_b, "goals_b")

    winner_id, is_draw = classify_outcome(outcome.team_a_id, outcome.team_b_id, goals_a, goals_b)
    next_a, next_b, next_standby = next_pairing(
        outcome.team_a_id, outcome.team_b_id, outcome.standby_id, winner_id, is_draw
    )
    return RotationResult(
        winner_id=winner_id,
        is_draw=is_draw,
        next_team_a_id=next_a,
        next_team_b_id=next_b,
        next_standby_id=next_standby,
        updated_form_state=FormState(
            streaks=updated_streaks(form_state.streaks, winner_id),
            top_scorer=form_state.top_scorer,
        ),
    )
