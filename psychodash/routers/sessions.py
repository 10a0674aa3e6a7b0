from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError

from ..auth import get_current_user, get_store
from ..repository import patient_repository, session_repository
from ..schemas import Session, SessionStatus, User, parse_timestamp, to_iso_utc
from ..stats import filter_sessions, patient_label, sessions_chronological
from ..store import KeyValueStore

router = APIRouter(prefix="/sessions")

def _normalized(session: Session, session_id: Optional[str] = None) -> Session:
    """Store dates as UTC ISO with a Z suffix so day-prefix matching works."""
    update = {"date": to_iso_utc(parse_timestamp(session.date))}
    if session_id is not None:
        update["id"] = session_id
    return session.model_copy(update=update)

@router.get("")
def list_sessions(
    status: Optional[SessionStatus] = Query(None),
    day: Optional[str] = Query(None, description="Calendar day (YYYY-MM-DD)"),
    store: KeyValueStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    try:
        sessions = session_repository(store).list()
        patients = patient_repository(store).list()
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to load sessions.")

    matching = filter_sessions(sessions_chronological(sessions), status=status, day=day or "")
    return {
        "sessions": [
            {**s.to_json(), "patientName": patient_label(patients, s.patient_id)}
            for s in matching
        ],
        "total": len(sessions),
    }

@router.post("", status_code=201)
def create_session(
    session: Session,
    store: KeyValueStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    try:
        saved = session_repository(store).upsert(_normalized(session))
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to save session.")
    return saved.to_json()

@router.put("/{session_id}")
def update_session(
    session_id: str,
    session: Session,
    store: KeyValueStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    repo = session_repository(store)
    existing = repo.get(session_id)
    if existing is not None:
        session = existing.model_copy(update=session.model_dump(exclude_unset=True, exclude={"id"}))
    try:
        saved = repo.upsert(_normalized(session, session_id))
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to update session.")
    return saved.to_json()

@router.delete("/{session_id}")
def delete_session(
    session_id: str,
    store: KeyValueStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    try:
        session_repository(store).delete_by_id(session_id)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to delete session.")
    return {"deleted": True, "id": session_id}
