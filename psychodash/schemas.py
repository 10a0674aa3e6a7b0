import uuid
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utc_now_iso() -> str:
    """Current UTC time as an ISO string with milliseconds and a Z suffix."""
    return to_iso_utc(datetime.now(timezone.utc))


def to_iso_utc(value: datetime) -> str:
    # naive datetimes are taken as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    # fromisoformat before 3.11 rejects a trailing Z
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def new_id() -> str:
    return str(uuid.uuid4())


class Entity(BaseModel):
    """Base for persisted records: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=new_id, min_length=1)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def _required(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("must not be empty")
    return value


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


class User(BaseModel):
    id: int
    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class Patient(Entity):
    first_name: str
    last_name: str
    age: int = Field(default=0, ge=0)
    contact: str = ""
    pathology: str = ""
    notes: str = ""
    created_at: str = Field(default_factory=utc_now_iso)

    @field_validator("first_name", "last_name")
    @classmethod
    def names_required(cls, value: str) -> str:
        return _required(value)


class SessionStatus(str, Enum):
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class Session(Entity):
    # patient_id is not checked against the patient collection
    patient_id: str
    date: str
    type: str = "Consultation"
    status: SessionStatus = SessionStatus.SCHEDULED
    summary: str = ""

    @field_validator("patient_id", "date")
    @classmethod
    def patient_and_date_required(cls, value: str) -> str:
        return _required(value)

    @field_validator("date")
    @classmethod
    def date_is_iso(cls, value: str) -> str:
        try:
            parse_timestamp(value)
        except ValueError:
            raise ValueError("must be an ISO-8601 timestamp")
        return value


class FinancialType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class FinancialRecord(Entity):
    date: str = Field(default_factory=utc_now_iso)
    description: str
    amount: float = Field(ge=0, allow_inf_nan=False)
    type: FinancialType

    @field_validator("description")
    @classmethod
    def description_required(cls, value: str) -> str:
        return _required(value)
