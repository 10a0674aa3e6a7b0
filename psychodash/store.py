"""
Key-value blob store: every collection is one JSON document under a fixed key.

`SqlStore` keeps the blobs in the `kv_store` table, `MemoryStore` in a dict.
Both expose the same get/set/remove/contains contract, so repositories never
know which one they run on.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .database import init_db
from .exceptions import CorruptDataError
from .models import StoredBlob
from .schemas import (
    FinancialRecord,
    FinancialType,
    Patient,
    Session,
    SessionStatus,
    to_iso_utc,
)

log = logging.getLogger("practice-app.store")

CURRENT_USER_KEY = "current-user"
PATIENTS_KEY = "patients"
SESSIONS_KEY = "sessions"
FINANCIALS_KEY = "financials"


class KeyValueStore(ABC):
    """Subclasses implement the raw string operations."""

    @abstractmethod
    def _read(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def _write(self, key: str, raw: str) -> None:
        ...

    @abstractmethod
    def _delete(self, key: str) -> None:
        ...

    def contains(self, key: str) -> bool:
        return self._read(key) is not None

    def get(self, key: str) -> Any:
        raw = self._read(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            log.warning("Corrupt JSON under key %r: %s", key, exc)
            raise CorruptDataError(key, str(exc)) from exc

    def set(self, key: str, value: Any) -> None:
        # NaN and Infinity are not JSON; refuse them before anything is written
        self._write(key, json.dumps(value, allow_nan=False))

    def remove(self, key: str) -> None:
        self._delete(key)


class MemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def _read(self, key):
        return self.data.get(key)

    def _write(self, key, raw):
        self.data[key] = raw

    def _delete(self, key):
        self.data.pop(key, None)


class SqlStore(KeyValueStore):
    """Blob store over SQLAlchemy; each write is its own committed transaction."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def create_tables(self) -> None:
        init_db(self.session_factory.kw["bind"])

    def _read(self, key):
        with self.session_factory() as db:
            row = db.get(StoredBlob, key)
            return row.value if row else None

    def _write(self, key, raw):
        with self.session_factory() as db:
            try:
                db.merge(StoredBlob(key=key, value=raw))
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                raise

    def _delete(self, key):
        with self.session_factory() as db:
            try:
                row = db.get(StoredBlob, key)
                if row is not None:
                    db.delete(row)
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                raise


def fixture_collections(now: Optional[datetime] = None) -> Dict[str, List[dict]]:
    """Demo data written on first start."""
    now = now or datetime.now(timezone.utc)
    created = to_iso_utc(now)
    patients = [
        Patient(id="1", first_name="Alice", last_name="Doe", age=32, contact="555-0101",
                pathology="Anxiety", notes="Patient reports high stress at work.", created_at=created),
        Patient(id="2", first_name="Bob", last_name="Smith", age=45, contact="555-0102",
                pathology="Depression", notes="Improving sleep patterns.", created_at=created),
    ]
    sessions = [
        Session(id="1", patient_id="1", date=to_iso_utc(now + timedelta(days=1)),
                type="Consultation", status=SessionStatus.SCHEDULED, summary=""),
        Session(id="2", patient_id="2", date=to_iso_utc(now - timedelta(days=1)),
                type="Therapy", status=SessionStatus.COMPLETED, summary="Discussed childhood events."),
    ]
    financials = [
        FinancialRecord(id="1", date=created, description="Session Payment - Alice",
                        amount=150, type=FinancialType.INCOME),
        FinancialRecord(id="2", date=created, description="Office Rent",
                        amount=500, type=FinancialType.EXPENSE),
    ]
    return {
        PATIENTS_KEY: [p.to_json() for p in patients],
        SESSIONS_KEY: [s.to_json() for s in sessions],
        FINANCIALS_KEY: [r.to_json() for r in financials],
    }


def seed_if_absent(store: KeyValueStore, now: Optional[datetime] = None) -> List[str]:
    """
    Write the fixture for every collection key that is missing.

    Each key is checked on its own: removing one collection reseeds only that
    one. A key that holds an empty list counts as present. Returns the keys written.
    """
    fixtures = None
    written = []
    for key in (PATIENTS_KEY, SESSIONS_KEY, FINANCIALS_KEY):
        if store.contains(key):
            continue
        if fixtures is None:
            fixtures = fixture_collections(now)
        store.set(key, fixtures[key])
        written.append(key)
    if written:
        log.info("Seeded collections: %s", ", ".join(written))
    return written
