from typing import Generic, List, Optional, Type, TypeVar, Union

from pydantic import ValidationError

from .exceptions import CorruptDataError
from .schemas import Entity, FinancialRecord, Patient, Session
from .stats import sessions_for_patient
from .store import FINANCIALS_KEY, PATIENTS_KEY, SESSIONS_KEY, KeyValueStore

T = TypeVar("T", bound=Entity)


class Repository(Generic[T]):
    """
    CRUD over one collection blob.

    Every mutation is read-modify-write followed by a single store write.
    Two callers mutating the same collection at once can overwrite each other;
    there is no locking.
    """

    def __init__(self, store: KeyValueStore, key: str, model: Type[T]):
        self.store = store
        self.key = key
        self.model = model

    def _load(self) -> List[T]:
        raw = self.store.get(self.key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise CorruptDataError(self.key, "expected a JSON array")
        try:
            return [self.model.model_validate(item) for item in raw]
        except ValidationError as exc:
            raise CorruptDataError(self.key, str(exc)) from exc

    def _save(self, items: List[T]) -> None:
        self.store.set(self.key, [item.to_json() for item in items])

    def list(self) -> List[T]:
        return self._load()

    def get(self, entity_id: str) -> Optional[T]:
        for item in self._load():
            if item.id == entity_id:
                return item
        return None

    def upsert(self, entity: Union[T, dict]) -> T:
        # dicts are validated before anything is read or written
        entity = self.model.model_validate(entity)
        items = self._load()
        for i, item in enumerate(items):
            if item.id == entity.id:
                items[i] = entity
                break
        else:
            items.append(entity)
        self._save(items)
        return entity.model_copy()

    def delete_by_id(self, entity_id: str) -> None:
        items = self._load()
        remaining = [item for item in items if item.id != entity_id]
        if len(remaining) != len(items):
            self._save(remaining)


class SessionRepository(Repository[Session]):
    def for_patient(self, patient_id: str) -> List[Session]:
        return sessions_for_patient(self.list(), patient_id)


def patient_repository(store: KeyValueStore) -> Repository[Patient]:
    return Repository(store, PATIENTS_KEY, Patient)


def session_repository(store: KeyValueStore) -> SessionRepository:
    return SessionRepository(store, SESSIONS_KEY, Session)


def financial_repository(store: KeyValueStore) -> Repository[FinancialRecord]:
    return Repository(store, FINANCIALS_KEY, FinancialRecord)
