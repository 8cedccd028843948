"""
Tests for squad definitions, roster validation and event/pairing validators.
"""
from __future__ import annotations

from pathlib import Path

import pytest

import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from turfkings.models import GoalEvent, Pairing, ShiboboEvent, Team
from turfkings.roster import (
    DEFAULT_TEAMS,
    get_team_by_id,
    initial_pairing,
    replace_roster,
    teams_from_dicts,
    validate_roster,
)
from turfkings.services.validation import ValidationError, event_from_dict, validate_pairing


def test_default_roster_is_valid():
    roster = validate_roster(DEFAULT_TEAMS)
    assert [t.id for t in roster] == ["team-enoch", "team-mdu", "team-nk"]
    assert all(t.captain in t.players for t in roster)
    assert get_team_by_id(roster, "team-nk").captain == "Nkululeko"
    assert get_team_by_id(roster, "nope") is None


def test_initial_pairing_follows_roster_order():
    assert initial_pairing(DEFAULT_TEAMS) == Pairing("team-enoch", "team-mdu", "team-nk")


@pytest.mark.parametrize(
    "teams",
    [
        DEFAULT_TEAMS[:2],
        DEFAULT_TEAMS + (Team(id="t4", label="T4", captain="A", players=("A",)),),
        (DEFAULT_TEAMS[0], DEFAULT_TEAMS[0], DEFAULT_TEAMS[2]),
        (DEFAULT_TEAMS[0], DEFAULT_TEAMS[1], Team(id="team-nk", label="NK", captain="A", players=("A", "A"))),
        (DEFAULT_TEAMS[0], DEFAULT_TEAMS[1], Team(id="team-nk", label="NK", captain="Z", players=("A", "B"))),
        (DEFAULT_TEAMS[0], DEFAULT_TEAMS[1], Team(id="team-nk", label="NK", captain="A", players=())),
    ],
)
def test_invalid_roster_rejected(teams):
    with pytest.raises(ValidationError):
        validate_roster(teams)


def test_replace_roster_allows_renames_not_new_ids():
    renamed = [Team(t.id, t.label + "!", t.captain, t.players) for t in DEFAULT_TEAMS]
    assert [t.label for t in replace_roster(DEFAULT_TEAMS, renamed)][0] == "Team-Enoch!"
    swapped = [Team("other", "Other", "A", ("A",))] + renamed[1:]
    with pytest.raises(ValidationError):
        replace_roster(DEFAULT_TEAMS, swapped)


def test_teams_from_dicts_round_trip():
    teams = teams_from_dicts([t.to_dict() for t in DEFAULT_TEAMS])
    assert teams == DEFAULT_TEAMS


def test_validate_pairing():
    ids = ["a", "b", "c"]
    validate_pairing(Pairing("c", "a", "b"), ids)
    with pytest.raises(ValidationError):
        validate_pairing(Pairing("a", "a", "b"), ids)
    with pytest.raises(ValidationError):
        validate_pairing(Pairing("a", "b", "d"), ids)


def test_event_from_dict_builds_tagged_variant():
    goal = event_from_dict(
        {"id": "1", "match_no": 2, "type": "goal", "team_id": "t", "scorer": "A", "assist": "B", "time_seconds": 9}
    )
    assert goal == GoalEvent("1", 2, "t", "A", "B", 9)
    shibobo = event_from_dict(
        {"id": "2", "match_no": 2, "type": "shibobo", "team_id": "t", "scorer": "A", "assist": None}
    )
    assert shibobo == ShiboboEvent("2", 2, "t", "A", 0)
    assert not hasattr(shibobo, "assist")
    with pytest.raises(ValidationError):
        event_from_dict({"id": "3", "match_no": 1, "type": "save", "team_id": "t", "scorer": "A"})
