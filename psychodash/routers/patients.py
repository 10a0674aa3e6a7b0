import io
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import SQLAlchemyError

from ..auth import get_current_user, get_store
from ..export import patients_csv
from ..repository import patient_repository, session_repository
from ..schemas import Patient, User
from ..services.summarizer import NoteSummarizer, note_summarizer
from ..stats import filter_patients, unique_pathologies
from ..store import KeyValueStore

router = APIRouter(prefix="/patients")

AI_SUMMARY_MARKER = "[AI summary]"

def get_summarizer() -> NoteSummarizer:
    return note_summarizer

def _filtered(store: KeyValueStore, q: Optional[str], pathology: Optional[str]):
    try:
        patients = patient_repository(store).list()
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to load patients.")
    return patients, filter_patients(patients, search=q or "", pathology=pathology or "")

@router.get("")
def list_patients(
    q: Optional[str] = Query(None, description="Search by first or last name"),
    pathology: Optional[str] = Query(None, description="Exact pathology"),
    store: KeyValueStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    patients, matching = _filtered(store, q, pathology)
    return {
        "patients": [p.to_json() for p in matching],
        "total": len(patients),
        "pathologies": unique_pathologies(patients),
    }

@router.get("/export.csv")
def export_csv(
    q: Optional[str] = None,
    pathology: Optional[str] = None,
    store: KeyValueStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    """Export follows the same filters as the list."""
    _, matching = _filtered(store, q, pathology)
    output = io.BytesIO(patients_csv(matching).encode("utf-8"))
    return StreamingResponse(
        output,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": "attachment; filename=patients_export.csv"},
    )

@router.post("", status_code=201)
def create_patient(
    patient: Patient,
    store: KeyValueStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    try:
        saved = patient_repository(store).upsert(patient)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to save patient.")
    return saved.to_json()

@router.get("/{patient_id}")
def get_patient(
    patient_id: str,
    store: KeyValueStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    p = patient_repository(store).get(patient_id)
    if not p:
        raise HTTPException(status_code=404, detail="Patient not found.")
    return p.to_json()

@router.put("/{patient_id}")
def update_patient(
    patient_id: str,
    patient: Patient,
    store: KeyValueStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    # fields left out of the body keep their stored values
    repo = patient_repository(store)
    existing = repo.get(patient_id)
    if existing is not None:
        patient = existing.model_copy(update=patient.model_dump(exclude_unset=True, exclude={"id"}))
    try:
        saved = repo.upsert(patient.model_copy(update={"id": patient_id}))
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to update patient.")
    return saved.to_json()

@router.delete("/{patient_id}")
def delete_patient(
    patient_id: str,
    store: KeyValueStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    # sessions referencing this patient are left in place
    try:
        patient_repository(store).delete_by_id(patient_id)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to delete patient.")
    return {"deleted": True, "id": patient_id}

@router.get("/{patient_id}/sessions")
def patient_sessions(
    patient_id: str,
    store: KeyValueStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    """Session history, most recent first. Works for deleted patients too."""
    sessions = session_repository(store).for_patient(patient_id)
    return {"patient_id": patient_id, "sessions": [s.to_json() for s in sessions]}

@router.post("/{patient_id}/summary")
async def summarize_patient_notes(
    patient_id: str,
    store: KeyValueStore = Depends(get_store),
    summarizer: NoteSummarizer = Depends(get_summarizer),
    user: User = Depends(get_current_user),
):
    """
    Summarize the stored notes and propose them with the summary appended.
    Nothing is saved; the caller PUTs the patient back to keep it.
    """
    p = patient_repository(store).get(patient_id)
    if not p:
        raise HTTPException(status_code=404, detail="Patient not found.")
    if not p.notes.strip():
        raise HTTPException(status_code=400, detail="Patient has no notes to summarize.")

    result = await summarizer.summarize_notes(p.notes)
    return {
        "ok": result.ok,
        "summary": result.text,
        "notes": f"{p.notes}\n\n{AI_SUMMARY_MARKER}: {result.text}",
    }
