import io

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import SQLAlchemyError

from ..auth import get_store, require_role
from ..export import financials_csv
from ..repository import financial_repository
from ..schemas import FinancialRecord, Role, User
from ..stats import financial_totals, format_amount
from ..store import KeyValueStore

# The whole ledger is admin-only
router = APIRouter(prefix="/financials")

def _records(store: KeyValueStore):
    try:
        return financial_repository(store).list()
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to load financial records.")

@router.get("")
def list_records(
    store: KeyValueStore = Depends(get_store),
    admin: User = Depends(require_role(Role.ADMIN)),
):
    return {"records": [r.to_json() for r in _records(store)]}

@router.get("/totals")
def totals(
    store: KeyValueStore = Depends(get_store),
    admin: User = Depends(require_role(Role.ADMIN)),
):
    t = financial_totals(_records(store))
    return {
        "income": t.income,
        "expense": t.expense,
        "net": t.net,
        "display": {
            "income": format_amount(t.income),
            "expense": format_amount(t.expense),
            "net": format_amount(t.net),
        },
    }

@router.get("/export.csv")
def export_csv(
    store: KeyValueStore = Depends(get_store),
    admin: User = Depends(require_role(Role.ADMIN)),
):
    output = io.BytesIO(financials_csv(_records(store)).encode("utf-8"))
    return StreamingResponse(
        output,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": "attachment; filename=financials_export.csv"},
    )

@router.post("", status_code=201)
def create_record(
    record: FinancialRecord,
    store: KeyValueStore = Depends(get_store),
    admin: User = Depends(require_role(Role.ADMIN)),
):
    """Records are never edited, only added and deleted."""
    repo = financial_repository(store)
    if repo.get(record.id) is not None:
        raise HTTPException(status_code=409, detail="Financial record already exists.")
    try:
        saved = repo.upsert(record)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to save financial record.")
    return saved.to_json()

@router.delete("/{record_id}")
def delete_record(
    record_id: str,
    store: KeyValueStore = Depends(get_store),
    admin: User = Depends(require_role(Role.ADMIN)),
):
    try:
        financial_repository(store).delete_by_id(record_id)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to delete financial record.")
    return {"deleted": True, "id": record_id}
