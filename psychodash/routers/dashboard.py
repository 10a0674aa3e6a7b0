from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from ..auth import get_current_user, get_store
from ..repository import patient_repository, session_repository
from ..schemas import User
from ..stats import dashboard_counts, status_breakdown, weekly_activity
from ..store import KeyValueStore

router = APIRouter()

@router.get("/dashboard")
def dashboard(
    store: KeyValueStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    """
    Figures for the landing page:
    - counts: total patients, sessions dated today, sessions still scheduled
    - activity: sessions per day over the last 7 days, oldest first
    - statuses: number of sessions per status
    """
    try:
        patients = patient_repository(store).list()
        sessions = session_repository(store).list()
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to load dashboard.")

    return {
        "user": user.model_dump(mode="json"),
        "counts": asdict(dashboard_counts(patients, sessions)),
        "activity": [asdict(point) for point in weekly_activity(sessions)],
        "statuses": status_breakdown(sessions),
    }
