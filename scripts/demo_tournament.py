#!/usr/bin/env python3
"""
Demo evening: play a few matches through the live buffer -> commit -> rotate -> persist.
Run from project root: python3 scripts/demo_tournament.py
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

# Ensure project root on path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from turfkings.persistence import TournamentRepository, get_connection, init_db, set_db_path
from turfkings.services.ledger import MatchLedger
from turfkings.services.match_session import MatchSession

# (team slot, scorer, assist) per match; "a"/"b" resolve against the pairing at kick-off
SCRIPT: list[list[tuple[str, str | None, str | None]]] = [
    [("a", "Enoch", "Uhone"), ("a", "Mark", None), ("b", "Scott", "Chad"), ("a", "Barlo", "Enoch")],
    [("a", "Enoch", None), ("b", "Zizou", "Kolobe"), ("b", "Dayaan", None), ("a", "Munya", "Mark")],
    [("a", "Nkululeko", "Zizou"), ("shibobo", "Dr Babs", None)],
    [("b", "Uhone", "Enoch")],
]


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    # Use data/demo.db for demo (distinct from turfkings.db)
    db_path = PROJECT_ROOT / "data" / "demo.db"
    set_db_path(db_path)
    init_db(db_path=db_path)

    repo = TournamentRepository()
    ledger = MatchLedger()
    session = MatchSession(ledger)
    conn = get_connection()
    try:
        ledger.add_listener(lambda snapshot: repo.save(conn, snapshot))
        teams = {t.id: t for t in ledger.teams}

        for plays in SCRIPT:
            match_no = session.start()
            pairing = session.pairing
            minute = 0
            for slot, scorer, assist in plays:
                minute += 90
                if slot == "shibobo":
                    # Credit the shibobo to whichever on-field team has the player
                    team_id = next(tid for tid in pairing.on_field() if teams[tid].has_player(scorer))
                    session.add_shibobo(team_id, scorer, time_seconds=minute)
                    continue
                team_id = pairing.team_a_id if slot == "a" else pairing.team_b_id
                session.add_goal(team_id, scorer, assist=assist, time_seconds=minute)
            goals_a, goals_b = session.goals()
            committed = session.confirm()
            print(
                f"Match {match_no}: {teams[pairing.team_a_id].label} {goals_a}-{goals_b} "
                f"{teams[pairing.team_b_id].label} -> "
                f"{'draw' if committed.result.is_draw else teams[committed.result.winner_id].label + ' stay on'}"
            )

        print("\nTeam leaderboard")
        for s in ledger.team_leaderboard():
            print(f"  {s.label:<12} GP {s.gp}  W {s.w}  D {s.d}  L {s.l}  GF {s.gf}  GA {s.ga}  GD {s.gd:+d}  PTS {s.pts}")
        print("\nPlayer leaderboard")
        for p in ledger.player_leaderboard():
            print(f"  {p.player:<10} ({p.team_label}) G {p.goals}  A {p.assists}  S {p.shibobos}  = {p.total}")
        top = ledger.top_scorer()
        if top:
            print(f"\nTop scorer: {top.player} ({top.goals} goals)")
        print(f"Streaks: {ledger.form_state.streaks}")

        saved = repo.load(conn)
        assert saved == ledger.snapshot(), "Persisted snapshot differs from ledger"
        print(f"Persisted to {db_path}")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
