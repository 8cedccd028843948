"""
REST API for the Turf Kings rotation.
Thin wrappers around the match ledger, the live match buffer and the snapshot store.
No access control here: code gates live in the front end.
"""
from __future__ import annotations

import logging
import os
import threading
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncGenerator, Generator, Literal

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from turfkings.analytics import ledger_totals
from turfkings.models import Pairing, Team
from turfkings.persistence import TournamentRepository, get_connection, init_db
from turfkings.services.ledger import MatchLedger
from turfkings.services.match_session import MatchSession
from turfkings.services.validation import ConsistencyError, ValidationError

LOG_LEVEL_ENV = "TURFKINGS_LOG_LEVEL"

logger = logging.getLogger(__name__)

_repo = TournamentRepository()


@contextmanager
def db_conn() -> Generator:
    """Yield a DB connection, ensure close on exit."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def domain_errors() -> Generator[None, None, None]:
    """ValidationError -> 400, ConsistencyError -> 409."""
    try:
        yield
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConsistencyError as e:
        raise HTTPException(status_code=409, detail=str(e))


# ---------- Startup: load or create the tournament ----------


def _persist(snapshot: dict[str, Any]) -> None:
    with db_conn() as conn:
        _repo.save(conn, snapshot)


def _load_ledger() -> MatchLedger:
    init_db()
    with db_conn() as conn:
        snapshot = _repo.load(conn)
    if snapshot is None:
        logger.info("No saved tournament; starting fresh")
        ledger = MatchLedger()
        _persist(ledger.snapshot())
    else:
        ledger = MatchLedger.from_snapshot(snapshot)
        logger.info("Loaded tournament at match %s (%s results)", ledger.match_no, len(ledger.results))
    ledger.add_listener(_persist)
    return ledger


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logging.basicConfig(
        level=os.environ.get(LOG_LEVEL_ENV, "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ledger = _load_ledger()
    app.state.ledger = ledger
    app.state.session = MatchSession(ledger)
    app.state.session_lock = threading.Lock()
    yield


# ---------- FastAPI app ----------
app = FastAPI(
    title="Turf Kings API",
    description="Three-team winner-stays-on rotation: live match, results ledger, leaderboards",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_ledger(request: Request) -> MatchLedger:
    return request.app.state.ledger


@contextmanager
def live_session(request: Request) -> Generator[MatchSession, None, None]:
    """The live match buffer, one request at a time."""
    with request.app.state.session_lock:
        yield request.app.state.session


# ---------- Request models ----------


class TeamIn(BaseModel):
    id: str = Field(..., min_length=1)
    label: str = Field(..., min_length=1)
    captain: str = Field(..., min_length=1)
    players: list[str] = Field(..., min_length=1)


class ReplaceTeamsRequest(BaseModel):
    teams: list[TeamIn]


class PairingRequest(BaseModel):
    team_a_id: str
    team_b_id: str
    standby_id: str


class EventRequest(BaseModel):
    type: Literal["goal", "shibobo"] = "goal"
    team_id: str
    scorer: str
    assist: str | None = None
    time_seconds: int = Field(0, ge=0)


class ConfirmRequest(BaseModel):
    """Optional full-time score; must agree with the logged goals."""
    goals_a: int | None = Field(None, ge=0)
    goals_b: int | None = Field(None, ge=0)


# ---------- Serializers ----------


def _session_view(session: MatchSession) -> dict[str, Any]:
    if not session.active:
        return {"active": False, "match_no": None, "pairing": None, "goals_a": 0, "goals_b": 0, "events": []}
    goals_a, goals_b = session.goals()
    return {
        "active": True,
        "match_no": session.match_no,
        "pairing": session.pairing.to_dict() if session.pairing else None,
        "goals_a": goals_a,
        "goals_b": goals_b,
        "events": [e.to_dict() for e in session.events],
    }


# ---------- Tournament state ----------


@app.get("/state")
def get_state(ledger: MatchLedger = Depends(get_ledger)) -> dict[str, Any]:
    """Next match number, who is on, streaks and top scorer (the landing ribbon)."""
    top = ledger.top_scorer()
    return {
        "match_no": ledger.match_no,
        "pairing": ledger.pairing.to_dict(),
        "form_state": ledger.form_state.to_dict(),
        "top_scorer": top.to_dict() if top else None,
        "totals": ledger_totals(ledger.results),
    }


@app.get("/teams")
def list_teams(ledger: MatchLedger = Depends(get_ledger)) -> dict[str, Any]:
    return {"teams": [t.to_dict() for t in ledger.teams]}


@app.put("/teams")
def replace_teams(req: ReplaceTeamsRequest, ledger: MatchLedger = Depends(get_ledger)) -> dict[str, Any]:
    with domain_errors():
        teams = ledger.replace_teams(
            Team(id=t.id, label=t.label, captain=t.captain, players=tuple(t.players)) for t in req.teams
        )
    return {"teams": [t.to_dict() for t in teams]}


@app.put("/pairing")
def override_pairing(
    req: PairingRequest, request: Request, ledger: MatchLedger = Depends(get_ledger)
) -> dict[str, Any]:
    """Change who plays next. Not allowed while a match is in progress."""
    with live_session(request) as session:
        if session.active:
            raise HTTPException(status_code=409, detail="Match in progress; confirm or discard it first")
        with domain_errors():
            pairing = ledger.override_pairing(Pairing(req.team_a_id, req.team_b_id, req.standby_id))
    return {"pairing": pairing.to_dict()}


# ---------- Live match ----------


@app.post("/matches/current/start")
def start_match(request: Request) -> dict[str, Any]:
    with live_session(request) as session:
        session.start()
        return _session_view(session)


@app.get("/matches/current")
def get_current_match(request: Request) -> dict[str, Any]:
    with live_session(request) as session:
        return _session_view(session)


@app.post("/matches/current/events")
def add_event(req: EventRequest, request: Request) -> dict[str, Any]:
    with live_session(request) as session, domain_errors():
        if req.type == "shibobo":
            if req.assist:
                raise ValidationError("A shibobo cannot have an assist")
            event = session.add_shibobo(req.team_id, req.scorer, time_seconds=req.time_seconds)
        else:
            event = session.add_goal(req.team_id, req.scorer, assist=req.assist, time_seconds=req.time_seconds)
        return {"event": event.to_dict(), "match": _session_view(session)}


@app.delete("/matches/current/events/last")
def undo_last_event(request: Request) -> dict[str, Any]:
    with live_session(request) as session, domain_errors():
        removed = session.undo_last()
        return {"removed": removed.to_dict() if removed else None, "match": _session_view(session)}


@app.delete("/matches/current/events/{index}")
def delete_event(index: int, request: Request) -> dict[str, Any]:
    with live_session(request) as session, domain_errors():
        removed = session.delete_event(index)
        return {"removed": removed.to_dict(), "match": _session_view(session)}


@app.post("/matches/current/confirm")
def confirm_match(request: Request, req: ConfirmRequest | None = None) -> dict[str, Any]:
    """Commit the live match to the ledger and rotate."""
    claimed = req or ConfirmRequest()
    with live_session(request) as session, domain_errors():
        committed = session.confirm(goals_a=claimed.goals_a, goals_b=claimed.goals_b)
    return {
        "result": committed.result.to_dict(),
        "form_state": committed.form_state.to_dict(),
        "next_pairing": committed.pairing.to_dict(),
        "events": [e.to_dict() for e in committed.events],
    }


@app.delete("/matches/current")
def discard_match(request: Request) -> dict[str, Any]:
    with live_session(request) as session:
        session.discard()
        return _session_view(session)


# ---------- Ledger & stats ----------


@app.get("/results")
def list_results(ledger: MatchLedger = Depends(get_ledger)) -> dict[str, Any]:
    return {"results": [r.to_dict() for r in ledger.results]}


@app.get("/events")
def list_events(match_no: int | None = None, ledger: MatchLedger = Depends(get_ledger)) -> dict[str, Any]:
    events = ledger.events
    if match_no is not None:
        events = tuple(e for e in events if e.match_no == match_no)
    return {"events": [e.to_dict() for e in events]}


@app.get("/stats/teams")
def team_stats(ledger: MatchLedger = Depends(get_ledger)) -> dict[str, Any]:
    return {"teams": [s.to_dict() for s in ledger.team_leaderboard()]}


@app.get("/stats/players")
def player_stats(ledger: MatchLedger = Depends(get_ledger)) -> dict[str, Any]:
    return {"players": [s.to_dict() for s in ledger.player_leaderboard()]}


@app.get("/stats/top-scorer")
def top_scorer(ledger: MatchLedger = Depends(get_ledger)) -> dict[str, Any]:
    top = ledger.top_scorer()
    return {"top_scorer": top.to_dict() if top else None}


# ---------- Backup ----------


@app.get("/export")
def export_snapshot(ledger: MatchLedger = Depends(get_ledger)) -> dict[str, Any]:
    return ledger.snapshot()


@app.post("/reset")
def reset_tournament(request: Request, ledger: MatchLedger = Depends(get_ledger)) -> dict[str, Any]:
    """Save-and-clear: returns the snapshot as it was, then starts a fresh tournament."""
    with live_session(request) as session:
        backup = ledger.snapshot()
        session.discard()
        ledger.reset()
    logger.info("Reset after backup of %s results", len(backup["results"]))
    return {"backup": backup}
