"""
Match ledger: the append-only record of a tournament evening.

Owns the match counter, the current pairing, the form state and every
committed result and event. commit_match is the only way results get in and
it is all-or-nothing: every check runs before the first write, and the writes
happen together under one lock. Committed records are never edited or
removed; reset() clears the whole tournament.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable

from turfkings import analytics
from turfkings.models import (
    CommitResult,
    FormState,
    MatchEvent,
    MatchOutcome,
    MatchResult,
    Pairing,
    PlayerStanding,
    Team,
    TeamStanding,
    TopScorer,
)
from turfkings.roster import DEFAULT_TEAMS, initial_pairing, replace_roster, validate_roster
from turfkings.services.rotation import compute_next_from_result
from turfkings.services.validation import (
    ConsistencyError,
    ValidationError,
    event_from_dict,
    goal_tally,
    validate_event,
    validate_goals,
    validate_pairing,
)

logger = logging.getLogger(__name__)

FIRST_MATCH_NO = 1

SnapshotListener = Callable[[dict[str, Any]], None]


class MatchLedger:
    """
    Single-writer owner of tournament state. Reads return immutable values
    (tuples, frozen dataclasses), so a caller never sees a half-applied commit.
    """

    def __init__(
        self,
        teams: Iterable[Team] = DEFAULT_TEAMS,
        *,
        match_no: int = FIRST_MATCH_NO,
        pairing: Pairing | None = None,
        form_state: FormState | None = None,
        results: Iterable[MatchResult] = (),
        events: Iterable[MatchEvent] = (),
    ) -> None:
        self._lock = threading.RLock()
        self._listeners: list[SnapshotListener] = []
        self._teams = validate_roster(teams)
        team_ids = [t.id for t in self._teams]
        self._pairing = pairing or initial_pairing(self._teams)
        validate_pairing(self._pairing, team_ids)
        self._form_state = form_state or FormState.initial(team_ids)
        if sorted(self._form_state.streaks) != sorted(team_ids):
            raise ValidationError(f"Form state must track exactly the teams {sorted(team_ids)}")
        if isinstance(match_no, bool) or not isinstance(match_no, int) or match_no < FIRST_MATCH_NO:
            raise ValidationError(f"match_no must be an integer >= {FIRST_MATCH_NO} (got {match_no!r})")
        self._match_no = match_no
        self._results: tuple[MatchResult, ...] = tuple(results)
        self._events: tuple[MatchEvent, ...] = tuple(events)

    # ---------- Read side ----------

    @property
    def teams(self) -> tuple[Team, ...]:
        return self._teams

    @property
    def match_no(self) -> int:
        return self._match_no

    @property
    def pairing(self) -> Pairing:
        return self._pairing

    @property
    def form_state(self) -> FormState:
        return self._form_state

    @property
    def results(self) -> tuple[MatchResult, ...]:
        return self._results

    @property
    def events(self) -> tuple[MatchEvent, ...]:
        return self._events

    def team(self, team_id: str) -> Team | None:
        return next((t for t in self._teams if t.id == team_id), None)

    def _read(self) -> tuple[tuple[Team, ...], tuple[MatchResult, ...], tuple[MatchEvent, ...]]:
        with self._lock:
            return self._teams, self._results, self._events

    def team_leaderboard(self) -> list[TeamStanding]:
        teams, results, _ = self._read()
        return analytics.team_leaderboard(teams, results)

    def player_leaderboard(self) -> list[PlayerStanding]:
        teams, _, events = self._read()
        return analytics.player_leaderboard(teams, events)

    def top_scorer(self) -> TopScorer | None:
        _, _, events = self._read()
        return analytics.top_scorer(events)

    # ---------- Match lifecycle ----------

    def start_next_match(self) -> int:
        """Number to stamp on events of the match about to start. Does not advance the counter."""
        return self._match_no

    def _check_commit(self, outcome: MatchOutcome, events: tuple[MatchEvent, ...]) -> None:
        """Every check commit_match needs. Raises before anything is written."""
        if outcome.match_no is not None and outcome.match_no != self._match_no:
            raise ConsistencyError(f"Stale match number {outcome.match_no}; current match is {self._match_no}")
        for e in events:
            if e.match_no != self._match_no:
                raise ConsistencyError(
                    f"Event {e.id} belongs to match {e.match_no}; current match is {self._match_no}"
                )
        # Malformed shape is a ValidationError; a well-formed but different pairing is stale
        validate_pairing(outcome.pairing, [t.id for t in self._teams])
        if outcome.pairing != self._pairing:
            raise ConsistencyError(
                f"Pairing {outcome.pairing.team_ids()} is not the current pairing {self._pairing.team_ids()}"
            )
        goals_a = validate_goals(outcome.goals_a, "goals_a")
        goals_b = validate_goals(outcome.goals_b, "goals_b")

        teams_by_id = {t.id: t for t in self._teams}
        seen = {e.id for e in self._events}
        for e in events:
            validate_event(e, teams_by_id, self._pairing.on_field())
            if e.id in seen:
                raise ValidationError(f"Duplicate event id: {e.id}")
            seen.add(e.id)

        tally_a = goal_tally(events, outcome.team_a_id)
        tally_b = goal_tally(events, outcome.team_b_id)
        if (tally_a, tally_b) != (goals_a, goals_b):
            raise ConsistencyError(
                f"Score {goals_a}-{goals_b} does not match logged goals {tally_a}-{tally_b}"
            )

    def commit_match(self, outcome: MatchOutcome, buffered_events: Iterable[MatchEvent] = ()) -> CommitResult:
        """
        Commit the finished match: append its result and events, advance the
        counter, move to the next pairing and form state. All or nothing.
        """
        events = tuple(buffered_events)
        with self._lock:
            try:
                self._check_commit(outcome, events)
                rotation = compute_next_from_result(self._form_state, outcome)
            except (ValidationError, ConsistencyError) as exc:
                logger.warning("Rejected commit for match %s: %s", self._match_no, exc)
                raise

            result = MatchResult(
                match_no=self._match_no,
                team_a_id=outcome.team_a_id,
                team_b_id=outcome.team_b_id,
                standby_id=outcome.standby_id,
                goals_a=outcome.goals_a,
                goals_b=outcome.goals_b,
                winner_id=rotation.winner_id,
                is_draw=rotation.is_draw,
            )
            all_events = self._events + events
            form_state = FormState(
                streaks=rotation.updated_form_state.streaks,
                top_scorer=analytics.top_scorer(all_events),
            )
            self._results = self._results + (result,)
            self._events = all_events
            self._match_no += 1
            self._pairing = rotation.next_pairing
            self._form_state = form_state
            self._notify(self._snapshot_locked())

        logger.info(
            "Committed match %s: %s %s-%s %s (%s); next %s vs %s, standby %s",
            result.match_no,
            result.team_a_id,
            result.goals_a,
            result.goals_b,
            result.team_b_id,
            "draw" if result.is_draw else f"winner {result.winner_id}",
            rotation.next_team_a_id,
            rotation.next_team_b_id,
            rotation.next_standby_id,
        )
        return CommitResult(result=result, form_state=form_state, pairing=rotation.next_pairing, events=events)

    # ---------- Admin operations ----------

    def override_pairing(self, pairing: Pairing) -> Pairing:
        """Set who plays next (captains' call before kick-off). Form state is untouched."""
        with self._lock:
            validate_pairing(pairing, [t.id for t in self._teams])
            self._pairing = pairing
            logger.info("Pairing for match %s set to %s", self._match_no, pairing.team_ids())
            self._notify(self._snapshot_locked())
        return pairing

    def replace_teams(self, teams: Iterable[Team]) -> tuple[Team, ...]:
        """Swap in edited squads. Team ids must stay the same; committed history is kept as-is."""
        with self._lock:
            self._teams = replace_roster(self._teams, teams)
            logger.info("Roster replaced: %s", [t.label for t in self._teams])
            self._notify(self._snapshot_locked())
            return self._teams

    def reset(self) -> None:
        """Clear the whole tournament: no results, no events, match 1, initial pairing and form."""
        with self._lock:
            self._results = ()
            self._events = ()
            self._match_no = FIRST_MATCH_NO
            self._pairing = initial_pairing(self._teams)
            self._form_state = FormState.initial([t.id for t in self._teams])
            logger.info("Tournament reset")
            self._notify(self._snapshot_locked())

    # ---------- Snapshot ----------

    def add_listener(self, listener: SnapshotListener) -> None:
        """
        listener(snapshot) is called after every commit, override, roster replace
        and reset, under the ledger lock. Listener errors are logged, not raised.
        """
        self._listeners.append(listener)

    def _notify(self, snapshot: dict[str, Any]) -> None:
        """Called with the lock held, so listeners see snapshots in commit order."""
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                # State has already advanced; the commit stands
                logger.exception("Snapshot listener %r failed at match %s", listener, snapshot["match_no"])

    def _snapshot_locked(self) -> dict[str, Any]:
        return {
            "teams": [t.to_dict() for t in self._teams],
            "match_no": self._match_no,
            "pairing": self._pairing.to_dict(),
            "form_state": self._form_state.to_dict(),
            "results": [r.to_dict() for r in self._results],
            "events": [e.to_dict() for e in self._events],
        }

    def snapshot(self) -> dict[str, Any]:
        """Whole serializable state. from_snapshot(snapshot()) rebuilds an identical ledger."""
        with self._lock:
            return self._snapshot_locked()

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]) -> MatchLedger:
        return cls(
            teams=[Team.from_dict(t) for t in data["teams"]],
            match_no=int(data["match_no"]),
            pairing=Pairing.from_dict(data["pairing"]),
            form_state=FormState.from_dict(data["form_state"]),
            results=[MatchResult.from_dict(r) for r in data.get("results", [])],
            events=[event_from_dict(e) for e in data.get("events", [])],
        )
