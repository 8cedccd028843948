"""
Tests for the match ledger: start/commit/reset, all-or-nothing commits,
roster and pairing admin, snapshot round-trip.
"""
from __future__ import annotations

import threading
from pathlib import Path

import pytest

import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from turfkings.models import FormState, GoalEvent, MatchOutcome, Pairing, ShiboboEvent, Team
from turfkings.roster import DEFAULT_TEAMS
from turfkings.services.ledger import MatchLedger
from turfkings.services.validation import ConsistencyError, ValidationError

ENOCH, MDU, NK = "team-enoch", "team-mdu", "team-nk"


@pytest.fixture
def ledger():
    return MatchLedger()


def _state(ledger):
    return (ledger.match_no, ledger.pairing, ledger.form_state, ledger.results, ledger.events)


def _goal(eid, match_no, team_id, scorer, assist=None):
    return GoalEvent(id=eid, match_no=match_no, team_id=team_id, scorer=scorer, assist=assist, time_seconds=60)


def _outcome(ledger, goals_a, goals_b, match_no=None):
    p = ledger.pairing
    return MatchOutcome(p.team_a_id, p.team_b_id, p.standby_id, goals_a, goals_b, match_no=match_no)


def test_initial_state(ledger):
    assert ledger.match_no == 1
    assert ledger.pairing == Pairing(ENOCH, MDU, NK)
    assert ledger.form_state.streaks == {ENOCH: 0, MDU: 0, NK: 0}
    assert ledger.form_state.top_scorer is None
    assert ledger.results == ()
    assert ledger.events == ()


def test_start_next_match_does_not_advance(ledger):
    assert ledger.start_next_match() == 1
    assert ledger.start_next_match() == 1
    assert ledger.match_no == 1


def test_commit_appends_and_rotates(ledger):
    events = [
        _goal("g1", 1, ENOCH, "Enoch", "Uhone"),
        _goal("g2", 1, ENOCH, "Mark"),
        _goal("g3", 1, MDU, "Scott"),
        ShiboboEvent(id="s1", match_no=1, team_id=MDU, scorer="Chad", time_seconds=200),
    ]
    committed = ledger.commit_match(_outcome(ledger, 2, 1, match_no=1), events)

    assert committed.result.match_no == 1
    assert committed.result.winner_id == ENOCH
    assert committed.result.is_draw is False
    assert committed.pairing == Pairing(ENOCH, NK, MDU)
    assert ledger.match_no == 2
    assert ledger.pairing == Pairing(ENOCH, NK, MDU)
    assert ledger.form_state.streaks == {ENOCH: 1, MDU: 0, NK: 0}
    assert ledger.results == (committed.result,)
    assert ledger.events == tuple(events)
    assert ledger.form_state.top_scorer.player == "Enoch"
    assert committed.form_state == ledger.form_state


def test_scenario_two_matches(ledger):
    ledger.commit_match(
        _outcome(ledger, 3, 1),
        [
            _goal("a", 1, ENOCH, "Enoch"),
            _goal("b", 1, ENOCH, "Enoch"),
            _goal("c", 1, ENOCH, "Barlo"),
            _goal("d", 1, MDU, "Mdu"),
        ],
    )
    assert ledger.pairing == Pairing(ENOCH, NK, MDU)
    committed = ledger.commit_match(
        _outcome(ledger, 2, 2),
        [
            _goal("e", 2, ENOCH, "Munya"),
            _goal("f", 2, NK, "Zizou"),
            _goal("g", 2, NK, "Zizou"),
            _goal("h", 2, ENOCH, "Mark"),
        ],
    )
    assert committed.result.is_draw is True
    assert committed.result.winner_id is None
    assert ledger.form_state.streaks == {ENOCH: 0, MDU: 0, NK: 0}
    assert ledger.pairing == Pairing(NK, MDU, ENOCH)
    assert ledger.match_no == 3
    # Enoch reached 2 before Zizou
    assert ledger.form_state.top_scorer.player == "Enoch"


def test_commit_goalless_draw_without_events(ledger):
    committed = ledger.commit_match(_outcome(ledger, 0, 0))
    assert committed.result.is_draw is True
    assert ledger.events == ()
    assert ledger.match_no == 2


@pytest.mark.parametrize(
    "goals, events, error",
    [
        # claimed score disagrees with the logged goals
        ((2, 0), [_goal("g1", 1, ENOCH, "Enoch")], ConsistencyError),
        ((0, 1), [_goal("g1", 1, ENOCH, "Enoch")], ConsistencyError),
        # stale match number on an event
        ((1, 0), [_goal("g1", 7, ENOCH, "Enoch")], ConsistencyError),
        # scorer not on that team
        ((1, 0), [_goal("g1", 1, ENOCH, "Mdu")], ValidationError),
        # assist is the scorer
        ((1, 0), [_goal("g1", 1, ENOCH, "Enoch", "Enoch")], ValidationError),
        # assist from another team
        ((1, 0), [_goal("g1", 1, ENOCH, "Enoch", "Scott")], ValidationError),
        # standby team cannot score
        ((0, 0), [_goal("g1", 1, NK, "Zizou")], ValidationError),
        # unknown team
        ((0, 0), [_goal("g1", 1, "team-ghost", "Zizou")], ValidationError),
        # duplicate event ids
        ((2, 0), [_goal("g1", 1, ENOCH, "Enoch"), _goal("g1", 1, ENOCH, "Mark")], ValidationError),
        # negative goals
        ((-1, 0), [], ValidationError),
    ],
)
def test_rejected_commit_leaves_ledger_unchanged(ledger, goals, events, error):
    before = _state(ledger)
    snapshot = ledger.snapshot()
    with pytest.raises(error):
        ledger.commit_match(_outcome(ledger, *goals), events)
    assert _state(ledger) == before
    assert ledger.snapshot() == snapshot


def test_stale_match_no_on_outcome_rejected(ledger):
    with pytest.raises(ConsistencyError):
        ledger.commit_match(_outcome(ledger, 0, 0, match_no=2))
    assert ledger.match_no == 1


def test_wrong_pairing_rejected(ledger):
    with pytest.raises(ConsistencyError):
        ledger.commit_match(MatchOutcome(MDU, ENOCH, NK, 0, 0))
    assert ledger.results == ()


def test_duplicate_event_id_across_matches_rejected(ledger):
    ledger.commit_match(_outcome(ledger, 1, 0), [_goal("g1", 1, ENOCH, "Enoch")])
    with pytest.raises(ValidationError):
        ledger.commit_match(_outcome(ledger, 1, 0), [_goal("g1", 2, ENOCH, "Enoch")])
    assert ledger.match_no == 2


def test_reset(ledger):
    ledger.commit_match(_outcome(ledger, 1, 0), [_goal("g1", 1, ENOCH, "Enoch")])
    ledger.reset()
    assert ledger.match_no == 1
    assert ledger.results == ()
    assert ledger.events == ()
    assert ledger.pairing == Pairing(ENOCH, MDU, NK)
    assert ledger.form_state.streaks == {ENOCH: 0, MDU: 0, NK: 0}
    assert ledger.form_state.top_scorer is None


def test_override_pairing(ledger):
    ledger.override_pairing(Pairing(NK, ENOCH, MDU))
    assert ledger.pairing == Pairing(NK, ENOCH, MDU)
    committed = ledger.commit_match(_outcome(ledger, 0, 1), [_goal("g1", 1, ENOCH, "Uhone")])
    assert committed.result.winner_id == ENOCH
    with pytest.raises(ValidationError):
        ledger.override_pairing(Pairing(NK, NK, MDU))
    assert ledger.pairing == committed.pairing


def test_replace_teams_keeps_ids(ledger):
    renamed = [
        Team(id=t.id, label=t.label.upper(), captain=t.captain, players=t.players + ("Sub",))
        for t in DEFAULT_TEAMS
    ]
    teams = ledger.replace_teams(renamed)
    assert [t.label for t in teams] == ["TEAM-ENOCH", "TEAM-MDU", "TEAM-NK"]
    assert ledger.team(ENOCH).has_player("Sub")

    other = list(renamed)
    other[0] = Team(id="team-new", label="New", captain="Enoch", players=("Enoch",))
    with pytest.raises(ValidationError):
        ledger.replace_teams(other)
    assert ledger.teams == teams


def test_leaderboards_from_ledger(ledger):
    ledger.commit_match(
        _outcome(ledger, 2, 0),
        [_goal("g1", 1, ENOCH, "Enoch", "Mark"), _goal("g2", 1, ENOCH, "Mark")],
    )
    teams = ledger.team_leaderboard()
    assert teams[0].team_id == ENOCH
    assert teams[0].pts == 3
    players = ledger.player_leaderboard()
    assert (players[0].player, players[0].total) == ("Mark", 2)
    assert ledger.top_scorer().player == "Enoch"
    assert ledger.team_leaderboard() == teams


def test_snapshot_round_trip(ledger):
    ledger.commit_match(
        _outcome(ledger, 1, 1),
        [
            _goal("g1", 1, ENOCH, "Enoch", "Mark"),
            ShiboboEvent(id="s1", match_no=1, team_id=MDU, scorer="Chad", time_seconds=12),
            _goal("g2", 1, MDU, "Scott"),
        ],
    )
    snapshot = ledger.snapshot()
    restored = MatchLedger.from_snapshot(snapshot)
    assert restored.snapshot() == snapshot
    assert restored.events == ledger.events
    assert restored.results == ledger.results
    assert restored.pairing == ledger.pairing


def test_from_snapshot_rejects_assisted_shibobo(ledger):
    snapshot = ledger.snapshot()
    snapshot["events"] = [
        {"id": "s1", "match_no": 1, "type": "shibobo", "team_id": MDU, "scorer": "Chad", "assist": "Scott",
         "time_seconds": 0},
    ]
    with pytest.raises(ValidationError):
        MatchLedger.from_snapshot(snapshot)


def test_invalid_construction_rejected():
    with pytest.raises(ValidationError):
        MatchLedger(teams=DEFAULT_TEAMS[:2])
    with pytest.raises(ValidationError):
        MatchLedger(pairing=Pairing("team-enoch", "team-enoch", "team-nk"))
    with pytest.raises(ValidationError):
        MatchLedger(match_no=0)


def test_listeners_receive_snapshot(ledger):
    seen = []
    ledger.add_listener(seen.append)
    ledger.commit_match(_outcome(ledger, 0, 0))
    ledger.reset()
    assert [s["match_no"] for s in seen] == [2, 1]
    assert len(seen[0]["results"]) == 1
    assert seen[1]["results"] == []


def test_listener_not_called_on_rejected_commit(ledger):
    seen = []
    ledger.add_listener(seen.append)
    with pytest.raises(ConsistencyError):
        ledger.commit_match(_outcome(ledger, 1, 0))
    assert seen == []


@pytest.mark.parametrize(
    "pairing",
    [(ENOCH, ENOCH, NK), (ENOCH, MDU, "team-ghost"), (MDU, MDU, MDU)],
)
def test_malformed_pairing_is_validation_error(ledger, pairing):
    before = _state(ledger)
    with pytest.raises(ValidationError):
        ledger.commit_match(MatchOutcome(*pairing, 0, 0))
    assert _state(ledger) == before


def test_form_state_is_read_only(ledger):
    with pytest.raises(TypeError):
        ledger.form_state.streaks[ENOCH] = 99
    assert ledger.form_state.streaks[ENOCH] == 0


def test_form_state_does_not_alias_caller_dict():
    streaks = {ENOCH: 2, MDU: 0, NK: 0}
    ledger = MatchLedger(form_state=FormState(streaks=streaks))
    streaks[ENOCH] = 50
    assert ledger.form_state.streak(ENOCH) == 2
    assert ledger.snapshot()["form_state"]["streaks"] == {ENOCH: 2, MDU: 0, NK: 0}


def test_failing_listener_does_not_hide_commit(ledger, caplog):
    def broken(snapshot):
        raise OSError("disk full")

    seen = []
    ledger.add_listener(broken)
    ledger.add_listener(seen.append)
    with caplog.at_level("ERROR", logger="turfkings.services.ledger"):
        committed = ledger.commit_match(_outcome(ledger, 1, 0), [_goal("g1", 1, ENOCH, "Enoch")])
    assert committed.result.match_no == 1
    assert ledger.match_no == 2
    assert [s["match_no"] for s in seen] == [2]
    assert "disk full" in caplog.text


def test_listener_runs_under_ledger_lock(ledger):
    held = []
    # RLock: a non-blocking acquire from another thread fails while the commit holds it
    def check(snapshot):
        result = []
        t = threading.Thread(target=lambda: result.append(ledger._lock.acquire(blocking=False)))
        t.start()
        t.join()
        held.append(not result[0])

    ledger.add_listener(check)
    ledger.commit_match(_outcome(ledger, 0, 0))
    ledger.override_pairing(Pairing(NK, MDU, ENOCH))
    ledger.reset()
    assert held == [True, True, True]
