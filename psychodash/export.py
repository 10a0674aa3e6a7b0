import csv
from typing import Iterable

import pandas as pd

from .schemas import FinancialRecord, FinancialType, Patient

PATIENT_COLUMNS = ["ID", "First name", "Last name", "Age", "Contact", "Pathology", "Created"]
FINANCIAL_COLUMNS = ["Date", "Description", "Type", "Amount"]


def _to_csv(rows: list, columns: list) -> str:
    df = pd.DataFrame(rows, columns=columns)
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def patients_csv(patients: Iterable[Patient]) -> str:
    rows = [{
        "ID": p.id,
        "First name": p.first_name,
        "Last name": p.last_name,
        "Age": p.age,
        "Contact": p.contact,
        "Pathology": p.pathology,
        "Created": p.created_at[:10],
    } for p in patients]
    return _to_csv(rows, PATIENT_COLUMNS)


def financials_csv(records: Iterable[FinancialRecord]) -> str:
    rows = [{
        "Date": r.date[:10],
        "Description": r.description,
        "Type": "Income" if r.type == FinancialType.INCOME else "Expense",
        "Amount": f"{r.amount:.2f}",
    } for r in records]
    return _to_csv(rows, FINANCIAL_COLUMNS)
