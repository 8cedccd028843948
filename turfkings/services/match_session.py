"""
In-progress match buffer.

Collects goals and shibobos for the match currently on the field. Nothing here
touches the ledger until confirm(); undo/delete/discard only edit the buffer.
"""
from __future__ import annotations

import uuid
from dataclasses import replace

from turfkings.models import CommitResult, GoalEvent, MatchEvent, MatchOutcome, Pairing, ShiboboEvent
from turfkings.services.ledger import MatchLedger
from turfkings.services.validation import ConsistencyError, ValidationError, goal_tally, validate_event


class MatchSession:
    """One live match at a time. start() captures the match number and pairing."""

    def __init__(self, ledger: MatchLedger) -> None:
        self._ledger = ledger
        self._match_no: int | None = None
        self._pairing: Pairing | None = None
        self._events: list[MatchEvent] = []

    @property
    def active(self) -> bool:
        return self._match_no is not None

    @property
    def match_no(self) -> int | None:
        return self._match_no

    @property
    def pairing(self) -> Pairing | None:
        return self._pairing

    @property
    def events(self) -> tuple[MatchEvent, ...]:
        return tuple(self._events)

    def _require_active(self) -> tuple[int, Pairing]:
        if self._match_no is None or self._pairing is None:
            raise ConsistencyError("No match in progress; call start() first")
        return self._match_no, self._pairing

    def start(self) -> int:
        """Begin the next match. Restarting an active match keeps its buffer."""
        if self.active:
            return self._match_no  # type: ignore[return-value]
        self._match_no = self._ledger.start_next_match()
        self._pairing = self._ledger.pairing
        self._events = []
        return self._match_no

    def _append(self, event: MatchEvent) -> MatchEvent:
        _, pairing = self._require_active()
        validate_event(event, {t.id: t for t in self._ledger.teams}, pairing.on_field())
        self._events.append(event)
        return event

    def add_goal(
        self,
        team_id: str,
        scorer: str,
        assist: str | None = None,
        time_seconds: int = 0,
    ) -> GoalEvent:
        match_no, _ = self._require_active()
        event = GoalEvent(
            id=str(uuid.uuid4()),
            match_no=match_no,
            team_id=team_id,
            scorer=scorer,
            assist=assist or None,
            time_seconds=time_seconds,
        )
        self._append(event)
        return event

    def add_shibobo(self, team_id: str, scorer: str, time_seconds: int = 0) -> ShiboboEvent:
        match_no, _ = self._require_active()
        event = ShiboboEvent(
            id=str(uuid.uuid4()),
            match_no=match_no,
            team_id=team_id,
            scorer=scorer,
            time_seconds=time_seconds,
        )
        self._append(event)
        return event

    def undo_last(self) -> MatchEvent | None:
        """Drop the most recent event. None when the buffer is empty."""
        self._require_active()
        if not self._events:
            return None
        return self._events.pop()

    def delete_event(self, index: int) -> MatchEvent:
        self._require_active()
        if not 0 <= index < len(self._events):
            raise ValidationError(f"No event at index {index} (buffer has {len(self._events)})")
        return self._events.pop(index)

    def goals(self) -> tuple[int, int]:
        _, pairing = self._require_active()
        return goal_tally(self._events, pairing.team_a_id), goal_tally(self._events, pairing.team_b_id)

    def summary(self) -> MatchOutcome:
        """Full-time summary built from the buffer, ready for commit."""
        match_no, pairing = self._require_active()
        goals_a, goals_b = self.goals()
        return MatchOutcome(
            team_a_id=pairing.team_a_id,
            team_b_id=pairing.team_b_id,
            standby_id=pairing.standby_id,
            goals_a=goals_a,
            goals_b=goals_b,
            match_no=match_no,
        )

    def confirm(self, goals_a: int | None = None, goals_b: int | None = None) -> CommitResult:
        """
        Commit to the ledger, then clear. A score typed in at full time can be
        passed; the ledger rejects it if it disagrees with the logged goals.
        On rejection the buffer is kept for correction.
        """
        outcome = self.summary()
        if goals_a is not None or goals_b is not None:
            outcome = replace(
                outcome,
                goals_a=outcome.goals_a if goals_a is None else goals_a,
                goals_b=outcome.goals_b if goals_b is None else goals_b,
            )
        committed = self._ledger.commit_match(outcome, self._events)
        self.discard()
        return committed

    def discard(self) -> None:
        """Abandon the match in progress. The ledger is not touched."""
        self._match_no = None
        self._pairing = None
        self._events = []
