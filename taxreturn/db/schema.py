"""SQLite database schema definition.

Monetary amounts and rates are stored as TEXT holding exact decimal strings.
"""

import sqlite3
from pathlib import Path

SCHEMA_VERSION = 1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS tax_years (
    year INTEGER PRIMARY KEY,
    is_active INTEGER NOT NULL DEFAULT 0,
    federal_deadline TEXT NOT NULL,
    state_deadlines TEXT NOT NULL DEFAULT '{}',
    no_income_tax_states TEXT NOT NULL DEFAULT '[]',
    capital_loss_limits TEXT NOT NULL DEFAULT '{}',
    social_security_wage_base TEXT,
    social_security_tax_rate TEXT
);

CREATE TABLE IF NOT EXISTS tax_brackets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    year INTEGER NOT NULL REFERENCES tax_years(year) ON DELETE CASCADE,
    jurisdiction TEXT NOT NULL,
    filing_status TEXT NOT NULL,
    min_income TEXT NOT NULL,
    max_income TEXT,
    rate TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_brackets_lookup
    ON tax_brackets (year, jurisdiction, filing_status);

CREATE TABLE IF NOT EXISTS standard_deductions (
    year INTEGER NOT NULL REFERENCES tax_years(year) ON DELETE CASCADE,
    jurisdiction TEXT NOT NULL,
    filing_status TEXT NOT NULL,
    amount TEXT NOT NULL,
    additional_blind_amount TEXT NOT NULL DEFAULT '0.00',
    additional_disabled_amount TEXT NOT NULL DEFAULT '0.00',
    PRIMARY KEY (year, jurisdiction, filing_status)
);

CREATE TABLE IF NOT EXISTS tax_returns (
    id TEXT PRIMARY KEY,
    tax_year INTEGER NOT NULL,
    filing_status TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'draft',
    profile TEXT NOT NULL DEFAULT '{}',
    total_income TEXT NOT NULL DEFAULT '0.00',
    adjusted_gross_income TEXT NOT NULL DEFAULT '0.00',
    deductions TEXT NOT NULL DEFAULT '0.00',
    taxable_income TEXT NOT NULL DEFAULT '0.00',
    total_tax TEXT NOT NULL DEFAULT '0.00',
    total_withheld TEXT NOT NULL DEFAULT '0.00',
    refund_or_owed TEXT NOT NULL DEFAULT '0.00',
    calculated_at TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS documents (
    id TEXT PRIMARY KEY,
    tax_return_id TEXT NOT NULL REFERENCES tax_returns(id) ON DELETE CASCADE,
    file_name TEXT NOT NULL,
    file_type TEXT NOT NULL,
    document_type TEXT NOT NULL,
    status TEXT NOT NULL,
    parsing_method TEXT,
    confidence_score REAL,
    raw_text_content TEXT,
    needs_review INTEGER NOT NULL DEFAULT 0,
    error_message TEXT,
    uploaded_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS parsing_attempts (
    id TEXT PRIMARY KEY,
    document_id TEXT NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    parsing_method TEXT NOT NULL,
    confidence_score REAL NOT NULL,
    extracted_data TEXT,
    processing_time_ms INTEGER NOT NULL DEFAULT 0,
    error_message TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS w2_data (
    id TEXT PRIMARY KEY,
    document_id TEXT REFERENCES documents(id) ON DELETE CASCADE,
    tax_return_id TEXT NOT NULL REFERENCES tax_returns(id) ON DELETE CASCADE,
    employer_name TEXT,
    employer_ein TEXT,
    wages TEXT NOT NULL,
    federal_withheld TEXT NOT NULL,
    social_security_wages TEXT,
    social_security_withheld TEXT,
    medicare_wages TEXT,
    medicare_withheld TEXT,
    state TEXT,
    state_wages TEXT,
    state_withheld TEXT
);

CREATE TABLE IF NOT EXISTS form_1099div (
    id TEXT PRIMARY KEY,
    document_id TEXT REFERENCES documents(id) ON DELETE CASCADE,
    tax_return_id TEXT NOT NULL REFERENCES tax_returns(id) ON DELETE CASCADE,
    payer_name TEXT,
    payer_tin TEXT,
    ordinary_dividends TEXT NOT NULL,
    qualified_dividends TEXT NOT NULL,
    total_capital_gain TEXT NOT NULL,
    federal_withheld TEXT NOT NULL,
    foreign_tax_paid TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS form_1099int (
    id TEXT PRIMARY KEY,
    document_id TEXT REFERENCES documents(id) ON DELETE CASCADE,
    tax_return_id TEXT NOT NULL REFERENCES tax_returns(id) ON DELETE CASCADE,
    payer_name TEXT,
    payer_tin TEXT,
    interest_income TEXT NOT NULL,
    early_withdrawal_penalty TEXT NOT NULL,
    us_bond_interest TEXT NOT NULL,
    federal_withheld TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS form_1099b (
    id TEXT PRIMARY KEY,
    document_id TEXT REFERENCES documents(id) ON DELETE CASCADE,
    tax_return_id TEXT NOT NULL REFERENCES tax_returns(id) ON DELETE CASCADE,
    payer_name TEXT,
    payer_tin TEXT,
    short_term_gain_loss TEXT,
    long_term_gain_loss TEXT
);

CREATE TABLE IF NOT EXISTS form_1099b_entries (
    id TEXT PRIMARY KEY,
    form_1099b_id TEXT NOT NULL REFERENCES form_1099b(id) ON DELETE CASCADE,
    position INTEGER NOT NULL DEFAULT 0,
    description TEXT NOT NULL DEFAULT '',
    date_acquired TEXT,
    date_sold TEXT,
    proceeds TEXT,
    cost_basis TEXT,
    gain_loss TEXT,
    is_short_term INTEGER,
    wash_sale INTEGER NOT NULL DEFAULT 0,
    wash_sale_amount TEXT NOT NULL DEFAULT '0.00',
    reported_to_irs INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS manual_adjustments (
    id TEXT PRIMARY KEY,
    tax_return_id TEXT NOT NULL REFERENCES tax_returns(id) ON DELETE CASCADE,
    entry_id TEXT REFERENCES form_1099b_entries(id) ON DELETE CASCADE,
    adjustment_code TEXT NOT NULL,
    adjustment_amount TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    date_acquired TEXT,
    date_sold TEXT,
    proceeds TEXT,
    cost_basis TEXT,
    is_short_term INTEGER,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS form_8949 (
    id TEXT PRIMARY KEY,
    tax_return_id TEXT NOT NULL REFERENCES tax_returns(id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    entry_id TEXT,
    manual_adjustment_id TEXT,
    description TEXT NOT NULL,
    date_acquired TEXT,
    date_sold TEXT,
    proceeds TEXT NOT NULL,
    cost_basis TEXT NOT NULL,
    adjustment_code TEXT NOT NULL,
    adjustment_amount TEXT NOT NULL,
    gain_or_loss TEXT NOT NULL,
    is_short_term INTEGER NOT NULL,
    wash_sale INTEGER NOT NULL,
    category TEXT NOT NULL,
    excluded INTEGER NOT NULL,
    needs_review INTEGER NOT NULL,
    review_reason TEXT
);

CREATE TABLE IF NOT EXISTS schedule_d (
    tax_return_id TEXT PRIMARY KEY REFERENCES tax_returns(id) ON DELETE CASCADE,
    short_term_proceeds TEXT NOT NULL,
    short_term_cost_basis TEXT NOT NULL,
    short_term_adjustments TEXT NOT NULL,
    short_term_gain_loss TEXT NOT NULL,
    long_term_proceeds TEXT NOT NULL,
    long_term_cost_basis TEXT NOT NULL,
    long_term_adjustments TEXT NOT NULL,
    long_term_gain_loss TEXT NOT NULL,
    net_short_term_gain_loss TEXT NOT NULL,
    net_long_term_gain_loss TEXT NOT NULL,
    total_gain_loss TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS form_1040 (
    tax_return_id TEXT PRIMARY KEY REFERENCES tax_returns(id) ON DELETE CASCADE,
    wages TEXT NOT NULL,
    interest_income TEXT NOT NULL,
    dividend_income TEXT NOT NULL,
    qualified_dividends TEXT NOT NULL,
    capital_gains TEXT NOT NULL,
    capital_loss_carryforward TEXT NOT NULL,
    total_income TEXT NOT NULL,
    adjustments TEXT NOT NULL,
    adjusted_gross_income TEXT NOT NULL,
    standard_deduction TEXT NOT NULL,
    taxable_income TEXT NOT NULL,
    tax TEXT NOT NULL,
    credits TEXT NOT NULL,
    total_tax TEXT NOT NULL,
    federal_withheld TEXT NOT NULL,
    refund_or_owed TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS state_tax_returns (
    tax_return_id TEXT NOT NULL REFERENCES tax_returns(id) ON DELETE CASCADE,
    state TEXT NOT NULL,
    state_income TEXT NOT NULL,
    state_deduction TEXT NOT NULL,
    state_taxable_income TEXT NOT NULL,
    state_tax TEXT NOT NULL,
    state_withheld TEXT NOT NULL,
    state_refund_or_owed TEXT NOT NULL,
    effective_rate TEXT NOT NULL,
    marginal_rate TEXT NOT NULL,
    has_income_tax INTEGER NOT NULL,
    PRIMARY KEY (tax_return_id, state)
);
"""


def connect(db_path: Path | str) -> sqlite3.Connection:
    """Open a connection usable from worker threads."""
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    if str(db_path) != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def create_schema(db_path: Path | str) -> sqlite3.Connection:
    """Create the database schema. Returns the connection."""
    conn = connect(db_path)
    conn.executescript(SCHEMA_SQL)
    conn.execute(
        "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
        (SCHEMA_VERSION,),
    )
    conn.commit()
    return conn
