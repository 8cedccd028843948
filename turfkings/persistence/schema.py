"""
SQLite schema for the tournament snapshot.
Migration-friendly: each table created with IF NOT EXISTS.
"""
from __future__ import annotations


def teams_schema() -> str:
    """position keeps roster order (slot A, slot B, standby at kick-off)."""
    return """
    CREATE TABLE IF NOT EXISTS teams (
        id TEXT PRIMARY KEY,
        label TEXT NOT NULL,
        captain TEXT NOT NULL,
        position INTEGER NOT NULL
    );
    """


def team_players_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS team_players (
        team_id TEXT NOT NULL,
        player TEXT NOT NULL,
        position INTEGER NOT NULL,
        PRIMARY KEY (team_id, player),
        FOREIGN KEY (team_id) REFERENCES teams(id)
    );
    """


def tournament_state_schema() -> str:
    """Single row (id = 1): match counter, current pairing, form state as JSON."""
    return """
    CREATE TABLE IF NOT EXISTS tournament_state (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        match_no INTEGER NOT NULL,
        team_a_id TEXT NOT NULL,
        team_b_id TEXT NOT NULL,
        standby_id TEXT NOT NULL,
        form_state_json TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    """


def match_results_schema() -> str:
    """Append-only. winner_id NULL = draw."""
    return """
    CREATE TABLE IF NOT EXISTS match_results (
        match_no INTEGER PRIMARY KEY,
        team_a_id TEXT NOT NULL,
        team_b_id TEXT NOT NULL,
        standby_id TEXT NOT NULL,
        goals_a INTEGER NOT NULL,
        goals_b INTEGER NOT NULL,
        winner_id TEXT,
        is_draw INTEGER NOT NULL
    );
    """


def match_events_schema() -> str:
    """Append-only. type: goal | shibobo; assist only ever set for goals. seq keeps log order."""
    return """
    CREATE TABLE IF NOT EXISTS match_events (
        id TEXT PRIMARY KEY,
        seq INTEGER NOT NULL,
        match_no INTEGER NOT NULL,
        type TEXT NOT NULL CHECK (type IN ('goal', 'shibobo')),
        team_id TEXT NOT NULL,
        scorer TEXT NOT NULL,
        assist TEXT,
        time_seconds INTEGER NOT NULL DEFAULT 0,
        CHECK (type = 'goal' OR assist IS NULL)
    );
    CREATE INDEX IF NOT EXISTS ix_match_events_match_no ON match_events(match_no);
    CREATE UNIQUE INDEX IF NOT EXISTS ix_match_events_seq ON match_events(seq);
    """


def all_schema_sql() -> str:
    """Combine all schema DDL for a single execution. Order: teams, team_players, tournament_state, match_results, match_events."""
    return "\n".join([
        teams_schema(),
        team_players_schema(),
        tournament_state_schema(),
        match_results_schema(),
        match_events_schema(),
    ])
