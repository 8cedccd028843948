"""
Repository for the tournament snapshot.
No business logic, only read/write of the plain snapshot dict that
MatchLedger.snapshot() produces and MatchLedger.from_snapshot() consumes.
"""
from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Any


# ---------- TournamentRepository ----------


class TournamentRepository:
    """
    Whole-state save/load. save() rewrites every table in one transaction so a
    reader never sees results without their events or a counter without its result.
    """

    def save(self, conn: sqlite3.Connection, snapshot: dict[str, Any]) -> None:
        now = datetime.now(timezone.utc).isoformat()
        pairing = snapshot["pairing"]
        try:
            for table in ("match_events", "match_results", "tournament_state", "team_players", "teams"):
                conn.execute(f"DELETE FROM {table}")
            for pos, team in enumerate(snapshot["teams"]):
                conn.execute(
                    "INSERT INTO teams (id, label, captain, position) VALUES (?, ?, ?, ?)",
                    (team["id"], team["label"], team["captain"], pos),
                )
                conn.executemany(
                    "INSERT INTO team_players (team_id, player, position) VALUES (?, ?, ?)",
                    [(team["id"], name, i) for i, name in enumerate(team["players"])],
                )
            conn.execute(
                """INSERT INTO tournament_state
                   (id, match_no, team_a_id, team_b_id, standby_id, form_state_json, updated_at)
                   VALUES (1, ?, ?, ?, ?, ?, ?)""",
                (
                    snapshot["match_no"],
                    pairing["team_a_id"],
                    pairing["team_b_id"],
                    pairing["standby_id"],
                    json.dumps(snapshot["form_state"]),
                    now,
                ),
            )
            conn.executemany(
                """INSERT INTO match_results
                   (match_no, team_a_id, team_b_id, standby_id, goals_a, goals_b, winner_id, is_draw)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (
                        r["match_no"], r["team_a_id"], r["team_b_id"], r["standby_id"],
                        r["goals_a"], r["goals_b"], r["winner_id"], 1 if r["is_draw"] else 0,
                    )
                    for r in snapshot["results"]
                ],
            )
            conn.executemany(
                """INSERT INTO match_events
                   (id, seq, match_no, type, team_id, scorer, assist, time_seconds)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (
                        e["id"], seq, e["match_no"], e["type"], e["team_id"],
                        e["scorer"], e.get("assist"), e.get("time_seconds", 0),
                    )
                    for seq, e in enumerate(snapshot["events"])
                ],
            )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise

    def load(self, conn: sqlite3.Connection) -> dict[str, Any] | None:
        """The saved snapshot, or None if nothing has been saved yet."""
        state = conn.execute(
            "SELECT match_no, team_a_id, team_b_id, standby_id, form_state_json FROM tournament_state WHERE id = 1"
        ).fetchone()
        if state is None:
            return None
        teams = []
        for t in conn.execute("SELECT id, label, captain FROM teams ORDER BY position").fetchall():
            players = conn.execute(
                "SELECT player FROM team_players WHERE team_id = ? ORDER BY position",
                (t["id"],),
            ).fetchall()
            teams.append({
                "id": t["id"],
                "label": t["label"],
                "captain": t["captain"],
                "players": [p["player"] for p in players],
            })
        results = [
            {
                "match_no": r["match_no"],
                "team_a_id": r["team_a_id"],
                "team_b_id": r["team_b_id"],
                "standby_id": r["standby_id"],
                "goals_a": r["goals_a"],
                "goals_b": r["goals_b"],
                "winner_id": r["winner_id"],
                "is_draw": bool(r["is_draw"]),
            }
            for r in conn.execute(
                """SELECT match_no, team_a_id, team_b_id, standby_id, goals_a, goals_b, winner_id, is_draw
                   FROM match_results ORDER BY match_no"""
            ).fetchall()
        ]
        events = [
            {
                "id": e["id"],
                "match_no": e["match_no"],
                "type": e["type"],
                "team_id": e["team_id"],
                "scorer": e["scorer"],
                "assist": e["assist"],
                "time_seconds": e["time_seconds"],
            }
            for e in conn.execute(
                "SELECT id, match_no, type, team_id, scorer, assist, time_seconds FROM match_events ORDER BY seq"
            ).fetchall()
        ]
        return {
            "teams": teams,
            "match_no": state["match_no"],
            "pairing": {
                "team_a_id": state["team_a_id"],
                "team_b_id": state["team_b_id"],
                "standby_id": state["standby_id"],
            },
            "form_state": json.loads(state["form_state_json"]),
            "results": results,
            "events": events,
        }

    def clear(self, conn: sqlite3.Connection) -> None:
        """Drop everything saved. The next load() returns None."""
        for table in ("match_events", "match_results", "tournament_state", "team_players", "teams"):
            conn.execute(f"DELETE FROM {table}")
        conn.commit()
