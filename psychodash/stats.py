"""
View-ready figures derived from the raw collections.

Everything here is a pure function of its arguments: inputs are never
mutated and the same collections always give the same result. "Today" is the
current UTC calendar day unless a `today` is passed in. Day matching is a
string-prefix test of the ISO timestamp against `YYYY-MM-DD`, not a time range.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from .schemas import (
    FinancialRecord,
    FinancialType,
    Patient,
    Session,
    SessionStatus,
    parse_timestamp,
)

UNKNOWN_PATIENT = "Unknown patient"


@dataclass(frozen=True)
class DashboardCounts:
    total_patients: int
    sessions_today: int
    pending_sessions: int


@dataclass(frozen=True)
class DayActivity:
    day: str
    label: str
    sessions: int


@dataclass(frozen=True)
class FinancialTotals:
    income: float
    expense: float
    net: float


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _on_day(session: Session, day: str) -> bool:
    return session.date.startswith(day)


def sessions_for_patient(sessions: Iterable[Session], patient_id: str) -> List[Session]:
    """A patient's session history, most recent first. Ties keep storage order."""
    matching = [s for s in sessions if s.patient_id == patient_id]
    return sorted(matching, key=lambda s: parse_timestamp(s.date), reverse=True)


def sessions_chronological(sessions: Iterable[Session]) -> List[Session]:
    return sorted(sessions, key=lambda s: parse_timestamp(s.date))


def dashboard_counts(
    patients: Sequence[Patient],
    sessions: Sequence[Session],
    today: Optional[date] = None,
) -> DashboardCounts:
    day = (today or utc_today()).isoformat()
    return DashboardCounts(
        total_patients=len(patients),
        sessions_today=sum(1 for s in sessions if _on_day(s, day)),
        pending_sessions=sum(1 for s in sessions if s.status == SessionStatus.SCHEDULED),
    )


def weekly_activity(sessions: Sequence[Session], today: Optional[date] = None) -> List[DayActivity]:
    """Seven points ending today, oldest first."""
    today = today or utc_today()
    points = []
    for offset in range(6, -1, -1):
        d = today - timedelta(days=offset)
        day = d.isoformat()
        points.append(DayActivity(
            day=day,
            label=d.strftime("%a"),
            sessions=sum(1 for s in sessions if _on_day(s, day)),
        ))
    return points


def status_breakdown(sessions: Iterable[Session]) -> Dict[str, int]:
    counts = {status.value: 0 for status in SessionStatus}
    for s in sessions:
        counts[s.status.value] += 1
    return counts


def financial_totals(records: Iterable[FinancialRecord]) -> FinancialTotals:
    income = 0.0
    expense = 0.0
    for r in records:
        if r.type == FinancialType.INCOME:
            income += r.amount
        elif r.type == FinancialType.EXPENSE:
            expense += r.amount
    return FinancialTotals(income=income, expense=expense, net=income - expense)


def format_amount(value: float) -> str:
    return f"{value:.2f}"


def filter_patients(patients: Iterable[Patient], search: str = "", pathology: str = "") -> List[Patient]:
    """Case-insensitive name search on first or last name, plus exact pathology filter."""
    needle = (search or "").lower()
    result = []
    for p in patients:
        if needle and needle not in p.first_name.lower() and needle not in p.last_name.lower():
            continue
        if pathology and p.pathology != pathology:
            continue
        result.append(p)
    return result


def unique_pathologies(patients: Iterable[Patient]) -> List[str]:
    seen: List[str] = []
    for p in patients:
        if p.pathology and p.pathology not in seen:
            seen.append(p.pathology)
    return seen


def filter_sessions(
    sessions: Iterable[Session],
    status: Optional[SessionStatus] = None,
    day: str = "",
) -> List[Session]:
    return [
        s for s in sessions
        if (status is None or s.status == status) and (not day or _on_day(s, day))
    ]


def patient_label(patients: Iterable[Patient], patient_id: str) -> str:
    """Display name as `Last, First`; dangling references get a placeholder."""
    for p in patients:
        if p.id == patient_id:
            return f"{p.last_name}, {p.first_name}"
    return UNKNOWN_PATIENT
