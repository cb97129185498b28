"""SQLite data access layer.

Rows are turned back into typed models on the way out so malformed data
surfaces here rather than deep inside the engines.
"""

import json
import logging
import sqlite3
import threading
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ValidationError

from taxreturn.db.base import Repository
from taxreturn.exceptions import DataValidationError, RecordNotFoundError
from taxreturn.models.documents import Document, ParsingAttempt
from taxreturn.models.enums import FilingStatus
from taxreturn.models.schedules import Form8949Row, ScheduleD
from taxreturn.models.tax_config import StandardDeduction, TaxBracket, TaxYear
from taxreturn.models.tax_forms import (
    Form1099B,
    Form1099BEntry,
    Form1099Div,
    Form1099Int,
    ManualAdjustment,
    W2Data,
)
from taxreturn.models.tax_return import Form1040, StateTaxReturn, TaxpayerProfile, TaxReturn

logger = logging.getLogger(__name__)


def _dec(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _columns(model: BaseModel, exclude: set[str] | None = None) -> dict[str, Any]:
    """Flatten a model into SQLite-ready column values."""
    values: dict[str, Any] = {}
    for name in type(model).model_fields:
        if exclude and name in exclude:
            continue
        value = getattr(model, name)
        if isinstance(value, bool):
            values[name] = int(value)
        elif isinstance(value, Decimal):
            values[name] = str(value)
        elif isinstance(value, (date, datetime)):
            values[name] = value.isoformat()
        elif isinstance(value, BaseModel):
            values[name] = value.model_dump_json()
        else:
            values[name] = value.value if hasattr(value, "value") else value
    return values


class SQLiteTaxRepository(Repository):
    """CRUD operations for every tax entity, backed by one SQLite connection."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self._lock = threading.RLock()

    # --- helpers ---

    def _query(self, sql: str, params: tuple | list = ()) -> list[dict]:
        with self._lock:
            cursor = self.conn.execute(sql, params)
            columns = [desc[0] for desc in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def _insert(self, table: str, values: dict[str, Any], replace: bool = False) -> None:
        verb = "INSERT OR REPLACE" if replace else "INSERT"
        names = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        self.conn.execute(
            f"{verb} INTO {table} ({names}) VALUES ({placeholders})",
            tuple(values.values()),
        )

    def _write(self, table: str, values: dict[str, Any], replace: bool = False) -> None:
        with self._lock, self.conn:
            self._insert(table, values, replace=replace)

    @staticmethod
    def _build(model: type[BaseModel], record: dict) -> Any:
        try:
            return model.model_validate(record)
        except ValidationError as exc:
            raise DataValidationError(model.__name__, str(exc)) from exc

    # --- Tax configuration ---

    def _tax_year_from_row(self, row: dict) -> TaxYear:
        row["is_active"] = bool(row["is_active"])
        row["state_deadlines"] = json.loads(row["state_deadlines"])
        row["no_income_tax_states"] = json.loads(row["no_income_tax_states"])
        row["capital_loss_limits"] = json.loads(row["capital_loss_limits"])
        return self._build(TaxYear, row)

    def list_tax_years(self) -> list[TaxYear]:
        rows = self._query("SELECT * FROM tax_years ORDER BY year DESC")
        return [self._tax_year_from_row(row) for row in rows]

    def get_tax_year(self, year: int) -> TaxYear | None:
        rows = self._query("SELECT * FROM tax_years WHERE year = ?", (year,))
        return self._tax_year_from_row(rows[0]) if rows else None

    def get_active_tax_year(self) -> TaxYear | None:
        rows = self._query(
            "SELECT * FROM tax_years WHERE is_active = 1 ORDER BY year DESC"
        )
        if len(rows) > 1:
            logger.warning(
                "%d tax years are flagged active; using the latest (%s)",
                len(rows), rows[0]["year"],
            )
        return self._tax_year_from_row(rows[0]) if rows else None

    def get_brackets(
        self, year: int, filing_status: FilingStatus, jurisdiction: str
    ) -> list[TaxBracket]:
        rows = self._query(
            """SELECT year, jurisdiction, filing_status, min_income, max_income, rate
               FROM tax_brackets
               WHERE year = ? AND jurisdiction = ? AND filing_status = ?""",
            (year, jurisdiction, str(filing_status)),
        )
        brackets = [self._build(TaxBracket, row) for row in rows]
        return sorted(brackets, key=lambda b: b.min_income)

    def get_standard_deduction(
        self, year: int, filing_status: FilingStatus, jurisdiction: str
    ) -> StandardDeduction | None:
        rows = self._query(
            """SELECT * FROM standard_deductions
               WHERE year = ? AND jurisdiction = ? AND filing_status = ?""",
            (year, jurisdiction, str(filing_status)),
        )
        return self._build(StandardDeduction, rows[0]) if rows else None

    def replace_tax_year_config(
        self,
        tax_year: TaxYear,
        brackets: list[TaxBracket],
        deductions: list[StandardDeduction],
    ) -> None:
        with self._lock, self.conn:
            self.conn.execute("DELETE FROM tax_brackets WHERE year = ?", (tax_year.year,))
            self.conn.execute(
                "DELETE FROM standard_deductions WHERE year = ?", (tax_year.year,)
            )
            self._insert(
                "tax_years",
                {
                    "year": tax_year.year,
                    "is_active": int(tax_year.is_active),
                    "federal_deadline": tax_year.federal_deadline.isoformat(),
                    "state_deadlines": json.dumps(
                        {k: _iso(v) for k, v in tax_year.state_deadlines.items()}
                    ),
                    "no_income_tax_states": json.dumps(tax_year.no_income_tax_states),
                    "capital_loss_limits": json.dumps(
                        {str(k): str(v) for k, v in tax_year.capital_loss_limits.items()}
                    ),
                    "social_security_wage_base": _dec(tax_year.social_security_wage_base),
                    "social_security_tax_rate": _dec(tax_year.social_security_tax_rate),
                },
                replace=True,
            )
            for bracket in brackets:
                self._insert("tax_brackets", _columns(bracket))
            for deduction in deductions:
                self._insert("standard_deductions", _columns(deduction))
        logger.info(
            "Stored tax year %s: %d brackets, %d deductions",
            tax_year.year, len(brackets), len(deductions),
        )

    # --- Tax returns ---

    def _tax_return_from_row(self, row: dict) -> TaxReturn:
        row.pop("created_at", None)
        row["profile"] = json.loads(row["profile"])
        return self._build(TaxReturn, row)

    def create_tax_return(self, tax_return: TaxReturn) -> TaxReturn:
        self._write("tax_returns", _columns(tax_return))
        return tax_return

    def get_tax_return(self, tax_return_id: str) -> TaxReturn | None:
        rows = self._query("SELECT * FROM tax_returns WHERE id = ?", (tax_return_id,))
        return self._tax_return_from_row(rows[0]) if rows else None

    def list_tax_returns(self, tax_year: int | None = None) -> list[TaxReturn]:
        if tax_year:
            rows = self._query(
                "SELECT * FROM tax_returns WHERE tax_year = ? ORDER BY created_at",
                (tax_year,),
            )
        else:
            rows = self._query("SELECT * FROM tax_returns ORDER BY created_at")
        return [self._tax_return_from_row(row) for row in rows]

    def update_profile(self, tax_return_id: str, profile: TaxpayerProfile) -> None:
        with self._lock, self.conn:
            cursor = self.conn.execute(
                "UPDATE tax_returns SET profile = ? WHERE id = ?",
                (profile.model_dump_json(), tax_return_id),
            )
        if cursor.rowcount == 0:
            raise RecordNotFoundError("Tax return", tax_return_id)

    # --- Documents ---

    def _document_from_row(self, row: dict) -> Document:
        row["needs_review"] = bool(row["needs_review"])
        return self._build(Document, row)

    def create_document(self, document: Document) -> Document:
        self._write("documents", _columns(document))
        return document

    def get_document(self, document_id: str) -> Document | None:
        rows = self._query("SELECT * FROM documents WHERE id = ?", (document_id,))
        return self._document_from_row(rows[0]) if rows else None

    def update_document(self, document: Document) -> None:
        values = _columns(document, exclude={"id"})
        assignments = ", ".join(f"{name} = ?" for name in values)
        with self._lock, self.conn:
            cursor = self.conn.execute(
                f"UPDATE documents SET {assignments} WHERE id = ?",
                (*values.values(), document.id),
            )
        if cursor.rowcount == 0:
            raise RecordNotFoundError("Document", document.id)

    def list_documents(self, tax_return_id: str) -> list[Document]:
        rows = self._query(
            "SELECT * FROM documents WHERE tax_return_id = ? ORDER BY uploaded_at",
            (tax_return_id,),
        )
        return [self._document_from_row(row) for row in rows]

    def delete_document(self, document_id: str) -> None:
        with self._lock, self.conn:
            cursor = self.conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))
        if cursor.rowcount == 0:
            raise RecordNotFoundError("Document", document_id)
        logger.info("Deleted document %s and its extracted records", document_id)

    def add_parsing_attempt(self, attempt: ParsingAttempt) -> None:
        values = _columns(attempt, exclude={"extracted_data"})
        values["extracted_data"] = (
            json.dumps(attempt.extracted_data, default=str)
            if attempt.extracted_data is not None
            else None
        )
        self._write("parsing_attempts", values)

    def get_parsing_attempts(self, document_id: str) -> list[ParsingAttempt]:
        rows = self._query(
            "SELECT * FROM parsing_attempts WHERE document_id = ? ORDER BY created_at, rowid",
            (document_id,),
        )
        for row in rows:
            if row.get("extracted_data"):
                row["extracted_data"] = json.loads(row["extracted_data"])
        return [self._build(ParsingAttempt, row) for row in rows]

    # --- Per-form income records ---

    def save_w2(self, record: W2Data) -> None:
        self._write("w2_data", _columns(record), replace=True)

    def get_w2s(self, tax_return_id: str) -> list[W2Data]:
        rows = self._query("SELECT * FROM w2_data WHERE tax_return_id = ?", (tax_return_id,))
        return [self._build(W2Data, row) for row in rows]

    def save_1099div(self, record: Form1099Div) -> None:
        self._write("form_1099div", _columns(record), replace=True)

    def get_1099divs(self, tax_return_id: str) -> list[Form1099Div]:
        rows = self._query(
            "SELECT * FROM form_1099div WHERE tax_return_id = ?", (tax_return_id,)
        )
        return [self._build(Form1099Div, row) for row in rows]

    def save_1099int(self, record: Form1099Int) -> None:
        self._write("form_1099int", _columns(record), replace=True)

    def get_1099ints(self, tax_return_id: str) -> list[Form1099Int]:
        rows = self._query(
            "SELECT * FROM form_1099int WHERE tax_return_id = ?", (tax_return_id,)
        )
        return [self._build(Form1099Int, row) for row in rows]

    def save_1099b(self, form: Form1099B, entries: list[Form1099BEntry]) -> None:
        with self._lock, self.conn:
            self.conn.execute("DELETE FROM form_1099b WHERE id = ?", (form.id,))
            self._insert("form_1099b", _columns(form))
            for position, entry in enumerate(entries):
                values = _columns(entry)
                values["form_1099b_id"] = form.id
                values["position"] = position
                self._insert("form_1099b_entries", values)

    def get_1099bs(self, tax_return_id: str) -> list[Form1099B]:
        rows = self._query(
            "SELECT * FROM form_1099b WHERE tax_return_id = ?", (tax_return_id,)
        )
        return [self._build(Form1099B, row) for row in rows]

    def get_1099b_entries(self, tax_return_id: str) -> list[Form1099BEntry]:
        rows = self._query(
            """SELECT e.* FROM form_1099b_entries e
               JOIN form_1099b b ON b.id = e.form_1099b_id
               WHERE b.tax_return_id = ?
               ORDER BY b.rowid, e.position""",
            (tax_return_id,),
        )
        for row in rows:
            row.pop("position", None)
            for flag in ("wash_sale", "reported_to_irs"):
                row[flag] = bool(row[flag])
            if row["is_short_term"] is not None:
                row["is_short_term"] = bool(row["is_short_term"])
        return [self._build(Form1099BEntry, row) for row in rows]

    def delete_document_records(self, document_id: str) -> None:
        with self._lock, self.conn:
            for table in ("w2_data", "form_1099div", "form_1099int", "form_1099b"):
                self.conn.execute(f"DELETE FROM {table} WHERE document_id = ?", (document_id,))

    def save_manual_adjustment(self, adjustment: ManualAdjustment) -> None:
        self._write("manual_adjustments", _columns(adjustment), replace=True)

    def get_manual_adjustments(self, tax_return_id: str) -> list[ManualAdjustment]:
        rows = self._query(
            """SELECT * FROM manual_adjustments WHERE tax_return_id = ?
               ORDER BY created_at, rowid""",
            (tax_return_id,),
        )
        for row in rows:
            row.pop("created_at", None)
            if row["is_short_term"] is not None:
                row["is_short_term"] = bool(row["is_short_term"])
        return [self._build(ManualAdjustment, row) for row in rows]

    # --- Calculated schedules ---

    def get_form8949_rows(self, tax_return_id: str) -> list[Form8949Row]:
        rows = self._query(
            "SELECT * FROM form_8949 WHERE tax_return_id = ? ORDER BY position",
            (tax_return_id,),
        )
        for row in rows:
            row.pop("position", None)
            for flag in ("is_short_term", "wash_sale", "excluded", "needs_review"):
                row[flag] = bool(row[flag])
        return [self._build(Form8949Row, row) for row in rows]

    def get_schedule_d(self, tax_return_id: str) -> ScheduleD | None:
        rows = self._query(
            "SELECT * FROM schedule_d WHERE tax_return_id = ?", (tax_return_id,)
        )
        return self._build(ScheduleD, rows[0]) if rows else None

    def get_form1040(self, tax_return_id: str) -> Form1040 | None:
        rows = self._query(
            "SELECT * FROM form_1040 WHERE tax_return_id = ?", (tax_return_id,)
        )
        return self._build(Form1040, rows[0]) if rows else None

    def get_state_returns(self, tax_return_id: str) -> list[StateTaxReturn]:
        rows = self._query(
            "SELECT * FROM state_tax_returns WHERE tax_return_id = ? ORDER BY state",
            (tax_return_id,),
        )
        for row in rows:
            row["has_income_tax"] = bool(row["has_income_tax"])
        return [self._build(StateTaxReturn, row) for row in rows]

    def _replace_capital_gains(
        self, tax_return_id: str, rows: list[Form8949Row], schedule_d: ScheduleD
    ) -> None:
        self.conn.execute("DELETE FROM form_8949 WHERE tax_return_id = ?", (tax_return_id,))
        for position, row in enumerate(rows):
            values = _columns(row)
            values["position"] = position
            self._insert("form_8949", values)
        self._insert("schedule_d", _columns(schedule_d), replace=True)

    def save_capital_gains(
        self, tax_return_id: str, rows: list[Form8949Row], schedule_d: ScheduleD
    ) -> None:
        with self._lock, self.conn:
            self._replace_capital_gains(tax_return_id, rows, schedule_d)

    def save_calculation(
        self,
        tax_return: TaxReturn,
        form1040: Form1040,
        rows: list[Form8949Row],
        schedule_d: ScheduleD,
        state_returns: list[StateTaxReturn],
    ) -> None:
        with self._lock, self.conn:
            cursor = self.conn.execute(
                """UPDATE tax_returns SET
                   filing_status = ?, status = ?, total_income = ?,
                   adjusted_gross_income = ?, deductions = ?, taxable_income = ?,
                   total_tax = ?, total_withheld = ?, refund_or_owed = ?,
                   calculated_at = ?
                   WHERE id = ?""",
                (
                    str(tax_return.filing_status),
                    str(tax_return.status),
                    _dec(tax_return.total_income),
                    _dec(tax_return.adjusted_gross_income),
                    _dec(tax_return.deductions),
                    _dec(tax_return.taxable_income),
                    _dec(tax_return.total_tax),
                    _dec(tax_return.total_withheld),
                    _dec(tax_return.refund_or_owed),
                    _iso(tax_return.calculated_at),
                    tax_return.id,
                ),
            )
            if cursor.rowcount == 0:
                raise RecordNotFoundError("Tax return", tax_return.id)
            self._replace_capital_gains(tax_return.id, rows, schedule_d)
            self._insert("form_1040", _columns(form1040), replace=True)
            self.conn.execute(
                "DELETE FROM state_tax_returns WHERE tax_return_id = ?", (tax_return.id,)
            )
            for state_return in state_returns:
                self._insert("state_tax_returns", _columns(state_return))
