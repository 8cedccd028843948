"""
Data models for the Turf Kings 5-aside rotation.
Domain objects only: no persistence or API logic.

Three teams share two on-field slots and one standby slot. Results and scoring
events are immutable once committed to the ledger; leaderboards are derived.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Union


# ---------- Event type ----------
class EventType(str, Enum):
    GOAL = "goal"
    SHIBOBO = "shibobo"  # skill move, never assisted


# ---------- Team ----------
@dataclass(frozen=True)
class Team:
    """
    One of the three squads. id is stable across renames; players are unique
    and ordered (captain listed among them).
    """
    id: str
    label: str
    captain: str
    players: tuple[str, ...]

    def has_player(self, name: str) -> bool:
        return name in self.players

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "captain": self.captain,
            "players": list(self.players),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Team:
        return cls(
            id=d["id"],
            label=d["label"],
            captain=d["captain"],
            players=tuple(d["players"]),
        )


# ---------- Pairing ----------
@dataclass(frozen=True)
class Pairing:
    """Slot A and slot B are on the field; standby waits. Always a permutation of the team ids."""
    team_a_id: str
    team_b_id: str
    standby_id: str

    def team_ids(self) -> tuple[str, str, str]:
        return (self.team_a_id, self.team_b_id, self.standby_id)

    def on_field(self) -> tuple[str, str]:
        return (self.team_a_id, self.team_b_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "team_a_id": self.team_a_id,
            "team_b_id": self.team_b_id,
            "standby_id": self.standby_id,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Pairing:
        return cls(team_a_id=d["team_a_id"], team_b_id=d["team_b_id"], standby_id=d["standby_id"])


# ---------- Top scorer ----------
@dataclass(frozen=True)
class TopScorer:
    """Most goals across the tournament (goals only, not shibobos or assists)."""
    player: str
    team_id: str
    goals: int

    def to_dict(self) -> dict[str, Any]:
        return {"player": self.player, "team_id": self.team_id, "goals": self.goals}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TopScorer:
        return cls(player=d["player"], team_id=d["team_id"], goals=int(d["goals"]))


# ---------- Form state ----------
@dataclass(frozen=True)
class FormState:
    """
    Consecutive-win counter per team plus the derived top scorer.
    Never mutated in place: the rotation engine returns a new value.
    streaks is copied into a read-only mapping on construction.
    """
    streaks: Mapping[str, int]
    top_scorer: TopScorer | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "streaks", MappingProxyType(dict(self.streaks)))

    @classmethod
    def initial(cls, team_ids: list[str] | tuple[str, ...]) -> FormState:
        return cls(streaks={tid: 0 for tid in team_ids})

    def streak(self, team_id: str) -> int:
        return self.streaks.get(team_id, 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "streaks": dict(self.streaks),
            "top_scorer": self.top_scorer.to_dict() if self.top_scorer else None,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> FormState:
        ts = d.get("top_scorer")
        return cls(
            streaks={k: int(v) for k, v in d["streaks"].items()},
            top_scorer=TopScorer.from_dict(ts) if ts else None,
        )


# ---------- Match outcome (summary handed in at full time) ----------
@dataclass(frozen=True)
class MatchOutcome:
    """
    Final score summary for the match on the field.
    match_no is optional; when given the ledger rejects a stale number.
    """
    team_a_id: str
    team_b_id: str
    standby_id: str
    goals_a: int
    goals_b: int
    match_no: int | None = None

    @property
    def pairing(self) -> Pairing:
        return Pairing(self.team_a_id, self.team_b_id, self.standby_id)


# ---------- Rotation result ----------
@dataclass(frozen=True)
class RotationResult:
    winner_id: str | None
    is_draw: bool
    next_team_a_id: str
    next_team_b_id: str
    next_standby_id: str
    updated_form_state: FormState

    @property
    def next_pairing(self) -> Pairing:
        return Pairing(self.next_team_a_id, self.next_team_b_id, self.next_standby_id)


# ---------- Match result ----------
@dataclass(frozen=True)
class MatchResult:
    """
    A committed match. Immutable once appended to the ledger.
    winner_id is None for a draw.
    """
    match_no: int
    team_a_id: str
    team_b_id: str
    standby_id: str
    goals_a: int
    goals_b: int
    winner_id: str | None
    is_draw: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "match_no": self.match_no,
            "team_a_id": self.team_a_id,
            "team_b_id": self.team_b_id,
            "standby_id": self.standby_id,
            "goals_a": self.goals_a,
            "goals_b": self.goals_b,
            "winner_id": self.winner_id,
            "is_draw": self.is_draw,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> MatchResult:
        return cls(
            match_no=int(d["match_no"]),
            team_a_id=d["team_a_id"],
            team_b_id=d["team_b_id"],
            standby_id=d["standby_id"],
            goals_a=int(d["goals_a"]),
            goals_b=int(d["goals_b"]),
            winner_id=d.get("winner_id"),
            is_draw=bool(d["is_draw"]),
        )


# ---------- Match events (tagged variant) ----------
@dataclass(frozen=True)
class GoalEvent:
    """A goal for team_id. assist is optional and never equal to scorer."""
    id: str
    match_no: int
    team_id: str
    scorer: str
    assist: str | None = None
    time_seconds: int = 0

    @property
    def type(self) -> EventType:
        return EventType.GOAL

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "match_no": self.match_no,
            "type": self.type.value,
            "team_id": self.team_id,
            "scorer": self.scorer,
            "assist": self.assist,
            "time_seconds": self.time_seconds,
        }


@dataclass(frozen=True)
class ShiboboEvent:
    """A shibobo by scorer. There is no assist field."""
    id: str
    match_no: int
    team_id: str
    scorer: str
    time_seconds: int = 0

    @property
    def type(self) -> EventType:
        return EventType.SHIBOBO

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "match_no": self.match_no,
            "type": self.type.value,
            "team_id": self.team_id,
            "scorer": self.scorer,
            "assist": None,
            "time_seconds": self.time_seconds,
        }


MatchEvent = Union[GoalEvent, ShiboboEvent]


# ---------- Leaderboard rows ----------
@dataclass(frozen=True)
class TeamStanding:
    team_id: str
    label: str
    captain: str
    gp: int = 0
    w: int = 0
    d: int = 0
    l: int = 0
    gf: int = 0
    ga: int = 0
    pts: int = 0

    @property
    def gd(self) -> int:
        return self.gf - self.ga

    def to_dict(self) -> dict[str, Any]:
        return {
            "team_id": self.team_id,
            "label": self.label,
            "captain": self.captain,
            "gp": self.gp,
            "w": self.w,
            "d": self.d,
            "l": self.l,
            "gf": self.gf,
            "ga": self.ga,
            "gd": self.gd,
            "pts": self.pts,
        }


@dataclass(frozen=True)
class PlayerStanding:
    team_id: str
    team_label: str
    player: str
    goals: int = 0
    assists: int = 0
    shibobos: int = 0

    @property
    def total(self) -> int:
        return self.goals + self.assists + self.shibobos

    def to_dict(self) -> dict[str, Any]:
        return {
            "team_id": self.team_id,
            "team_label": self.team_label,
            "player": self.player,
            "goals": self.goals,
            "assists": self.assists,
            "shibobos": self.shibobos,
            "total": self.total,
        }


# ---------- Commit result ----------
@dataclass(frozen=True)
class CommitResult:
    """What commit_match hands back: the appended result and the new form state."""
    result: MatchResult
    form_state: FormState
    pairing: Pairing
    events: tuple[MatchEvent, ...] = field(default_factory=tuple)
