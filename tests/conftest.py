"""Shared test fixtures for the tax return core."""

from pathlib import Path

import pytest

from taxreturn.db.repository import SQLiteTaxRepository
from taxreturn.db.schema import create_schema
from taxreturn.models.enums import FilingStatus
from taxreturn.models.tax_return import Address, TaxpayerProfile, TaxReturn
from taxreturn.tax_config.loader import import_tax_tables
from taxreturn.tax_config.store import TaxConfigStore

TABLES_DIR = Path(__file__).parent.parent / "taxreturn" / "tax_config" / "tables"

W2_TEXT = """Form W-2 Wage and Tax Statement 2024
Employer's name: Acme Corp
Employer identification number (EIN): 12-3456789
Employee's social security number: 123-45-6789
1 Wages, tips, other compensation 60,000.00
2 Federal income tax withheld 8,000.00
3 Social security wages 60,000.00
4 Social security tax withheld 3,720.00
5 Medicare wages and tips 60,000.00
6 Medicare tax withheld 870.00
15 State CA
16 State wages, tips, etc. 60,000.00
17 State income tax 2,500.00"""

FORM_1099INT_TEXT = """Form 1099-INT Interest Income 2024
Payer's name: First National Bank
Payer's TIN: 11-2233445
Recipient's TIN: 123-45-6789
1 Interest income 1,500.00
2 Early withdrawal penalty 0.00
3 Interest on U.S. Savings Bonds and Treas. obligations 0.00
4 Federal income tax withheld 100.00"""

FORM_1099DIV_TEXT = """Form 1099-DIV Dividends and Distributions 2024
Payer's name: Vanguard Group
Payer's TIN: 23-1945930
1a Total ordinary dividends 1,234.56
1b Qualified dividends 987.65
2a Total capital gain distributions 500.00
4 Federal income tax withheld 0.00"""

FORM_1099B_TEXT = """Form 1099-B Proceeds From Broker and Barter Exchange Transactions 2024
Payer's name: Example Brokerage LLC
Payer's TIN: 98-7654321
Short-term transactions for covered tax lots (basis reported to the IRS)
100 sh AAPL 01/15/2024 06/20/2024 15,000.00 12,000.00 0.00 3,000.00
50 sh MSFT 02/01/2024 08/15/2024 5,000.00 6,000.00 200.00 (800.00)
Total short-term 20,000.00 18,000.00 200.00 2,200.00
Long-term transactions for covered tax lots (basis reported to the IRS)
10 sh GOOG 03/01/2020 09/10/2024 2,000.00 1,000.00 1,000.00
Total long-term 2,000.00 1,000.00 1,000.00"""


@pytest.fixture
def repo():
    """In-memory repository seeded with the bundled 2024 tables."""
    conn = create_schema(":memory:")
    repository = SQLiteTaxRepository(conn)
    import_tax_tables(repository, TABLES_DIR / "2024.json")
    yield repository
    conn.close()


@pytest.fixture
def load_year(repo):
    """Import another bundled year into ``repo``."""

    def _load(year: int):
        return import_tax_tables(repo, TABLES_DIR / f"{year}.json")

    return _load


@pytest.fixture
def empty_repo():
    conn = create_schema(":memory:")
    yield SQLiteTaxRepository(conn)
    conn.close()


@pytest.fixture
def config(repo) -> TaxConfigStore:
    return TaxConfigStore(repo)


@pytest.fixture
def tax_return(repo) -> TaxReturn:
    """A single filer living in California."""
    profile = TaxpayerProfile(
        first_name="Jane",
        last_name="Doe",
        address=Address(street="1 Main St", city="Oakland", state="CA", zip_code="94601"),
    )
    return repo.create_tax_return(
        TaxReturn(tax_year=2024, filing_status=FilingStatus.SINGLE, profile=profile)
    )


@pytest.fixture
def w2_text() -> str:
    return W2_TEXT


@pytest.fixture
def int_text() -> str:
    return FORM_1099INT_TEXT


@pytest.fixture
def div_text() -> str:
    return FORM_1099DIV_TEXT


@pytest.fixture
def b_text() -> str:
    return FORM_1099B_TEXT
