"""
Leaderboards derived from the committed ledger.
Read-only: consumes teams, results and events, returns sorted standings.
Recomputed from scratch on every call; no cached totals to keep in sync.
Used by MatchLedger, GET /stats/* and the demo script.
"""
from __future__ import annotations

from typing import Any, Iterable

from turfkings.models import (
    GoalEvent,
    MatchEvent,
    MatchResult,
    PlayerStanding,
    ShiboboEvent,
    Team,
    TeamStanding,
    TopScorer,
)

POINTS_WIN = 3
POINTS_DRAW = 1
POINTS_LOSS = 0


# ---------- Team leaderboard ----------


def _empty_team_row(team: Team) -> dict[str, Any]:
    return {
        "team_id": team.id,
        "label": team.label,
        "captain": team.captain,
        "gp": 0,
        "w": 0,
        "d": 0,
        "l": 0,
        "gf": 0,
        "ga": 0,
        "pts": 0,
    }


def _record(row: dict[str, Any], scored: int, conceded: int) -> None:
    row["gp"] += 1
    row["gf"] += scored
    row["ga"] += conceded
    if scored > conceded:
        row["w"] += 1
        row["pts"] += POINTS_WIN
    elif scored < conceded:
        row["l"] += 1
        row["pts"] += POINTS_LOSS
    else:
        row["d"] += 1
        row["pts"] += POINTS_DRAW


def team_leaderboard(teams: Iterable[Team], results: Iterable[MatchResult]) -> list[TeamStanding]:
    """
    One row per team, including teams that have not played yet.
    Sort: points, then goal difference, then goals for (all descending);
    remaining ties keep team-list order. Results naming an unknown team are skipped.
    """
    rows = {t.id: _empty_team_row(t) for t in teams}
    for r in results:
        a = rows.get(r.team_a_id)
        b = rows.get(r.team_b_id)
        if a is None or b is None:
            continue
        _record(a, r.goals_a, r.goals_b)
        _record(b, r.goals_b, r.goals_a)
    standings = [TeamStanding(**row) for row in rows.values()]
    # sorted() is stable, so equal keys stay in team order
    return sorted(standings, key=lambda s: (-s.pts, -s.gd, -s.gf))


# ---------- Player leaderboard ----------


def player_leaderboard(teams: Iterable[Team], events: Iterable[MatchEvent]) -> list[PlayerStanding]:
    """
    One row per (team_id, player) seen as a scorer or assist-giver.
    A goal credits the scorer and, if present, the assist under the same team;
    a shibobo credits only its scorer. Sort: total, then goals (descending);
    remaining ties keep first-appearance order.
    """
    labels = {t.id: t.label for t in teams}
    counts: dict[tuple[str, str], dict[str, int]] = {}

    def row(team_id: str, player: str) -> dict[str, int]:
        key = (team_id, player)
        if key not in counts:
            counts[key] = {"goals": 0, "assists": 0, "shibobos": 0}
        return counts[key]

    for e in events:
        scorer_row = row(e.team_id, e.scorer)
        if isinstance(e, GoalEvent):
            scorer_row["goals"] += 1
            if e.assist:
                row(e.team_id, e.assist)["assists"] += 1
        elif isinstance(e, ShiboboEvent):
            scorer_row["shibobos"] += 1

    standings = [
        PlayerStanding(team_id=team_id, team_label=labels.get(team_id, ""), player=player, **c)
        for (team_id, player), c in counts.items()
    ]
    return sorted(standings, key=lambda s: (-s.total, -s.goals))


# ---------- Top scorer ----------


def top_scorer(events: Iterable[MatchEvent]) -> TopScorer | None:
    """
    Most goals across all events (goals only). A tie goes to whoever reached
    that count first. None when nobody has scored.

    Goals are counted per (team_id, player), the same key as the player
    leaderboard: a player moved to another squad by a roster replace starts a
    new tally there, and the two tallies are not merged.
    """
    goals: dict[tuple[str, str], int] = {}
    best: tuple[str, str] | None = None
    best_goals = 0
    for e in events:
        if not isinstance(e, GoalEvent):
            continue
        key = (e.team_id, e.scorer)
        goals[key] = goals.get(key, 0) + 1
        # Strictly greater: the first to reach a count keeps the lead
        if goals[key] > best_goals:
            best, best_goals = key, goals[key]
    if best is None:
        return None
    return TopScorer(player=best[1], team_id=best[0], goals=best_goals)


def ledger_totals(results: Iterable[MatchResult]) -> dict[str, int]:
    """Matches, goals and draws across committed results. Used by the summary views."""
    matches = goals = draws = 0
    for r in results:
        matches += 1
        goals += r.goals_a + r.goals_b
        draws += 1 if r.is_draw else 0
    return {"matches": matches, "goals": goals, "draws": draws}
