"""Typer CLI interface for taxreturn."""

import logging
from decimal import Decimal
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from taxreturn.settings import DEFAULT_DB_PATH

app = typer.Typer(
    name="taxreturn",
    help="Tax document ingestion and federal/state return calculation.",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Manage versioned tax tables.", no_args_is_help=True)
return_app = typer.Typer(help="Create and inspect tax returns.", no_args_is_help=True)
app.add_typer(config_app, name="config")
app.add_typer(return_app, name="return")

console = Console()

STATUS_ALIASES = {
    "SINGLE": "single",
    "MFJ": "married_joint",
    "MFS": "married_separate",
    "HOH": "head_of_household",
    "QW": "qualifying_widow",
}

DB_OPTION = typer.Option(
    DEFAULT_DB_PATH,
    "--db",
    envvar="TAXRETURN_DB",
    help="Path to the SQLite database file",
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr"),
) -> None:
    """Tax document ingestion and federal/state return calculation."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _open_repo(db: Path):
    from taxreturn.db.repository import SQLiteTaxRepository
    from taxreturn.db.schema import create_schema

    if str(db) != ":memory:":
        db.parent.mkdir(parents=True, exist_ok=True)
    return SQLiteTaxRepository(create_schema(db))


def _filing_status(value: str):
    from taxreturn.models.enums import FilingStatus

    key = value.strip().upper()
    try:
        return FilingStatus(STATUS_ALIASES.get(key, value.strip().lower()))
    except ValueError:
        valid = ", ".join(STATUS_ALIASES)
        _fail(f"Invalid filing status '{value}'. Valid: {valid}")


def _fmt(value: Decimal | None) -> str:
    if value is None:
        return "-"
    return f"${value:,.2f}"


# --- config ---


@config_app.command("import")
def config_import(
    paths: list[Path] = typer.Argument(None, help="Tax table JSON files (default: the bundled tables)"),
    db: Path = DB_OPTION,
) -> None:
    """Import tax tables; each file replaces its year's configuration."""
    from taxreturn.exceptions import TaxReturnError
    from taxreturn.tax_config.loader import bundled_table_paths, import_tax_tables

    repo = _open_repo(db)
    for path in paths or bundled_table_paths():
        try:
            tax_year = import_tax_tables(repo, path)
        except TaxReturnError as exc:
            _fail(str(exc))
        active = " (active)" if tax_year.is_active else ""
        typer.echo(f"Imported {tax_year.year}{active} from {path.name}")


@config_app.command("years")
def config_years(db: Path = DB_OPTION) -> None:
    """List configured tax years."""
    from taxreturn.tax_config.store import TaxConfigStore

    years = TaxConfigStore(_open_repo(db)).list_tax_years()
    if not years:
        typer.echo("No tax years configured. Run `taxreturn config import` first.")
        raise typer.Exit(0)

    tbl = Table(title="Tax Years", show_header=True)
    tbl.add_column("Year")
    tbl.add_column("Active")
    tbl.add_column("Federal deadline")
    tbl.add_column("No income tax states")
    for tax_year in years:
        tbl.add_row(
            str(tax_year.year),
            "yes" if tax_year.is_active else "",
            tax_year.federal_deadline.isoformat(),
            " ".join(tax_year.no_income_tax_states),
        )
    console.print(tbl)


@config_app.command("brackets")
def config_brackets(
    year: int = typer.Argument(..., help="Tax year"),
    filing_status: str = typer.Option("single", "--status", "-s", help="Filing status: SINGLE, MFJ, MFS, HOH, QW"),
    jurisdiction: str = typer.Option("federal", "--jurisdiction", "-j", help="'federal' or a state code"),
    db: Path = DB_OPTION,
) -> None:
    """Show a bracket table."""
    from taxreturn.exceptions import TaxReturnError
    from taxreturn.tax_config.store import TaxConfigStore

    status = _filing_status(filing_status)
    try:
        brackets = TaxConfigStore(_open_repo(db)).get_brackets(year, status, jurisdiction)
    except TaxReturnError as exc:
        _fail(str(exc))

    tbl = Table(title=f"{year} {jurisdiction} brackets ({status.value})", show_header=True)
    tbl.add_column("Over", justify="right")
    tbl.add_column("Up to", justify="right")
    tbl.add_column("Rate", justify="right")
    for bracket in brackets:
        tbl.add_row(_fmt(bracket.min_income), _fmt(bracket.max_income), f"{bracket.rate * 100:.2f}%")
    console.print(tbl)


@config_app.command("deduction")
def config_deduction(
    year: int = typer.Argument(..., help="Tax year"),
    filing_status: str = typer.Option("single", "--status", "-s", help="Filing status: SINGLE, MFJ, MFS, HOH, QW"),
    jurisdiction: str = typer.Option("federal", "--jurisdiction", "-j", help="'federal' or a state code"),
    db: Path = DB_OPTION,
) -> None:
    """Show a standard deduction."""
    from taxreturn.exceptions import TaxReturnError
    from taxreturn.tax_config.store import TaxConfigStore

    status = _filing_status(filing_status)
    try:
        deduction = TaxConfigStore(_open_repo(db)).get_standard_deduction(year, status, jurisdiction)
    except TaxReturnError as exc:
        _fail(str(exc))
    typer.echo(f"{year} {deduction.jurisdiction} standard deduction ({status.value}): {_fmt(deduction.amount)}")
    if deduction.additional_blind_amount:
        typer.echo(f"  Additional (blind, per person):    {_fmt(deduction.additional_blind_amount)}")
    if deduction.additional_disabled_amount:
        typer.echo(f"  Additional (disabled, per person): {_fmt(deduction.additional_disabled_amount)}")


# --- returns ---


@return_app.command("create")
def return_create(
    year: int = typer.Option(..., "--year", "-y", help="Tax year"),
    filing_status: str = typer.Option("single", "--status", "-s", help="Filing status: SINGLE, MFJ, MFS, HOH, QW"),
    first_name: str = typer.Option(None, "--first-name"),
    last_name: str = typer.Option(None, "--last-name"),
    state: str = typer.Option(None, "--state", help="State of residence (2-letter code)"),
    db: Path = DB_OPTION,
) -> None:
    """Create a draft tax return and print its id."""
    from pydantic import ValidationError

    from taxreturn.models.tax_return import Address, TaxpayerProfile, TaxReturn

    status = _filing_status(filing_status)
    try:
        address = Address(street="", city="", state=state, zip_code="") if state else None
    except ValidationError as exc:
        _fail(str(exc.errors()[0]["msg"]))
    profile = TaxpayerProfile(first_name=first_name, last_name=last_name, address=address)
    tax_return = _open_repo(db).create_tax_return(
        TaxReturn(tax_year=year, filing_status=status, profile=profile)
    )
    typer.echo(tax_return.id)


@return_app.command("list")
def return_list(
    year: int = typer.Option(None, "--year", "-y", help="Only this tax year"),
    db: Path = DB_OPTION,
) -> None:
    """List tax returns."""
    returns = _open_repo(db).list_tax_returns(year)
    if not returns:
        typer.echo("No tax returns found.")
        raise typer.Exit(0)
    tbl = Table(title="Tax Returns", show_header=True)
    tbl.add_column("Id")
    tbl.add_column("Year")
    tbl.add_column("Status")
    tbl.add_column("Filing status")
    tbl.add_column("Refund / (owed)", justify="right")
    for tax_return in returns:
        tbl.add_row(
            tax_return.id,
            str(tax_return.tax_year),
            tax_return.status.value,
            tax_return.filing_status.value,
            _fmt(tax_return.refund_or_owed),
        )
    console.print(tbl)


@return_app.command("show")
def return_show(
    tax_return_id: str = typer.Argument(..., help="Tax return id"),
    db: Path = DB_OPTION,
) -> None:
    """Show a return's summary and its documents."""
    repo = _open_repo(db)
    tax_return = repo.get_tax_return(tax_return_id)
    if tax_return is None:
        _fail(f"Tax return not found: {tax_return_id}")

    typer.echo(f"Tax return {tax_return.id}")
    typer.echo(f"  Year:            {tax_return.tax_year}")
    typer.echo(f"  Filing status:   {tax_return.filing_status.value}")
    typer.echo(f"  Status:          {tax_return.status.value}")
    if tax_return.calculated_at:
        typer.echo(f"  Total income:    {_fmt(tax_return.total_income)}")
        typer.echo(f"  Taxable income:  {_fmt(tax_return.taxable_income)}")
        typer.echo(f"  Total tax:       {_fmt(tax_return.total_tax)}")
        typer.echo(f"  Refund / (owed): {_fmt(tax_return.refund_or_owed)}")
    else:
        typer.echo("  Not calculated yet.")

    documents = repo.list_documents(tax_return_id)
    if documents:
        _print_documents(documents)


def _print_documents(documents) -> None:
    tbl = Table(title="Documents", show_header=True)
    tbl.add_column("Id")
    tbl.add_column("File")
    tbl.add_column("Type")
    tbl.add_column("Status")
    tbl.add_column("Method")
    tbl.add_column("Confidence", justify="right")
    tbl.add_column("Review")
    for doc in documents:
        tbl.add_row(
            doc.id[:8],
            doc.file_name,
            doc.document_type.value,
            doc.status.value,
            doc.parsing_method.value if doc.parsing_method else "-",
            f"{doc.confidence_score:.2f}" if doc.confidence_score is not None else "-",
            "yes" if doc.needs_review else "",
        )
    console.print(tbl)


# --- documents ---


@app.command()
def classify(file: Path = typer.Argument(..., help="Document to classify (.pdf, .txt, .csv)")) -> None:
    """Print the detected document type."""
    from taxreturn.exceptions import TaxReturnError
    from taxreturn.parsing.classifier import classify as classify_text
    from taxreturn.parsing.classifier import matching_types
    from taxreturn.parsing.text_source import read_document

    if not file.exists():
        _fail(f"File not found: {file}")
    try:
        text, _ = read_document(file)
    except TaxReturnError as exc:
        _fail(str(exc))

    typer.echo(classify_text(text).value)
    candidates = matching_types(text)
    if len(candidates) > 1:
        typer.echo(f"Also matched: {', '.join(c.value for c in candidates[1:])}", err=True)


@app.command()
def ingest(
    tax_return_id: str = typer.Argument(..., help="Tax return id"),
    files: list[Path] = typer.Argument(..., help="Documents to ingest (.pdf, .txt, .csv)"),
    document_type: str = typer.Option(None, "--type", "-t", help="Skip classification: W-2, 1099-DIV, 1099-INT, 1099-B"),
    no_llm: bool = typer.Option(False, "--no-llm", help="Pattern extraction only"),
    db: Path = DB_OPTION,
) -> None:
    """Classify, extract and store tax documents for a return."""
    from taxreturn.exceptions import TaxReturnError
    from taxreturn.models.enums import DocumentType
    from taxreturn.parsing.field_extractor import FieldExtractor
    from taxreturn.parsing.text_source import read_document
    from taxreturn.services.documents import DocumentService, DocumentSubmission
    from taxreturn.settings import Settings

    forced_type = None
    if document_type:
        try:
            forced_type = DocumentType(document_type.upper())
        except ValueError:
            _fail(f"Invalid document type '{document_type}'")

    submissions: list[DocumentSubmission] = []
    errors: list[tuple[str, str]] = []
    for file_path in files:
        try:
            text, file_type = read_document(file_path)
        except (OSError, TaxReturnError) as exc:
            typer.echo(f"Error reading {file_path.name}: {exc}", err=True)
            errors.append((file_path.name, str(exc)))
            continue
        submissions.append(
            DocumentSubmission(
                file_name=file_path.name, raw_text=text, file_type=file_type, document_type=forced_type
            )
        )

    settings = Settings()
    if no_llm:
        settings = settings.model_copy(update={"use_llm_fallback": False})
    service = DocumentService(_open_repo(db), FieldExtractor.from_settings(settings), settings.max_workers)
    try:
        results = service.submit_batch(tax_return_id, submissions)
    except TaxReturnError as exc:
        _fail(str(exc))

    if results:
        _print_documents([result.document for result in results])
    for result in results:
        if result.document.error_message:
            errors.append((result.document.file_name, result.document.error_message))
    typer.echo(f"Ingested {len(results)} document(s), {len(errors)} error(s).")
    if errors:
        raise typer.Exit(1)


@app.command("set-type")
def set_type(
    document_id: str = typer.Argument(..., help="Document id"),
    document_type: str = typer.Argument(..., help="W-2, 1099-DIV, 1099-INT or 1099-B"),
    no_llm: bool = typer.Option(False, "--no-llm", help="Pattern extraction only"),
    db: Path = DB_OPTION,
) -> None:
    """Set a document's type by hand and extract it again."""
    from taxreturn.exceptions import TaxReturnError
    from taxreturn.models.enums import DocumentType
    from taxreturn.parsing.field_extractor import FieldExtractor
    from taxreturn.services.documents import DocumentService
    from taxreturn.settings import Settings

    try:
        doc_type = DocumentType(document_type.upper())
    except ValueError:
        _fail(f"Invalid document type '{document_type}'")

    settings = Settings()
    if no_llm:
        settings = settings.model_copy(update={"use_llm_fallback": False})
    service = DocumentService(_open_repo(db), FieldExtractor.from_settings(settings))
    try:
        result = service.assign_document_type(document_id, doc_type)
    except TaxReturnError as exc:
        _fail(str(exc))
    _print_documents([result.document])


@app.command("delete-document")
def delete_document(
    document_id: str = typer.Argument(..., help="Document id"),
    db: Path = DB_OPTION,
) -> None:
    """Delete a document and the income records extracted from it."""
    repo = _open_repo(db)
    if repo.get_document(document_id) is None:
        _fail(f"Document not found: {document_id}")
    repo.delete_document(document_id)
    typer.echo(f"Deleted {document_id}")


# --- calculation ---


@app.command("schedule-d")
def schedule_d(
    tax_return_id: str = typer.Argument(..., help="Tax return id"),
    db: Path = DB_OPTION,
) -> None:
    """Rebuild Form 8949 and Schedule D from the stored 1099-B entries."""
    from taxreturn.engines.capital_gains import CapitalGainsAggregator
    from taxreturn.reports import Form8949Generator, ScheduleDGenerator

    repo = _open_repo(db)
    if repo.get_tax_return(tax_return_id) is None:
        _fail(f"Tax return not found: {tax_return_id}")
    rows, summary = CapitalGainsAggregator(repo).aggregate_return(tax_return_id)
    typer.echo(Form8949Generator().render(rows))
    typer.echo(ScheduleDGenerator().render(summary))


@app.command()
def calculate(
    tax_return_id: str = typer.Argument(..., help="Tax return id"),
    filing_status: str = typer.Option(None, "--status", "-s", help="Override the return's filing status"),
    states: list[str] = typer.Option(None, "--state", help="State to compute (repeatable)"),
    db: Path = DB_OPTION,
) -> None:
    """Calculate federal and state tax for a return."""
    from taxreturn.engines.return_aggregator import ReturnAggregator
    from taxreturn.exceptions import TaxReturnError
    from taxreturn.tax_config.store import TaxConfigStore

    status = _filing_status(filing_status) if filing_status else None
    repo = _open_repo(db)
    try:
        result = ReturnAggregator(repo, TaxConfigStore(repo)).calculate(
            tax_return_id, filing_status=status, states=states or None
        )
    except TaxReturnError as exc:
        _fail(str(exc))

    f = result.form1040
    tbl = Table(title=f"Tax Return {result.tax_return.tax_year}", show_header=False)
    tbl.add_column("Line")
    tbl.add_column("Amount", justify="right")
    tbl.add_row("Total income", _fmt(f.total_income))
    tbl.add_row("Standard deduction", _fmt(f.standard_deduction))
    tbl.add_row("Taxable income", _fmt(f.taxable_income))
    tbl.add_row("Tax", _fmt(f.total_tax))
    tbl.add_row("Withheld", _fmt(f.federal_withheld))
    label = "Refund" if f.refund_or_owed >= 0 else "Amount owed"
    tbl.add_row(label, _fmt(abs(f.refund_or_owed)))
    for state in result.state_returns:
        tbl.add_row(f"{state.state} tax", _fmt(state.state_tax))
    console.print(tbl)
    for warning in result.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")


@app.command()
def report(
    tax_return_id: str = typer.Argument(..., help="Tax return id"),
    output: Path = typer.Option(None, "--output", "-o", help="Write report files to this directory"),
    db: Path = DB_OPTION,
) -> None:
    """Render Form 8949, Schedule D and Form 1040 for a calculated return."""
    from taxreturn.reports import Form1040Generator, Form8949Generator, ScheduleDGenerator

    repo = _open_repo(db)
    tax_return = repo.get_tax_return(tax_return_id)
    if tax_return is None:
        _fail(f"Tax return not found: {tax_return_id}")
    form1040 = repo.get_form1040(tax_return_id)
    summary = repo.get_schedule_d(tax_return_id)
    if form1040 is None or summary is None:
        _fail("Return not calculated yet. Run `taxreturn calculate` first.")

    reports = {
        "form8949.txt": Form8949Generator().render(repo.get_form8949_rows(tax_return_id)),
        "schedule_d.txt": ScheduleDGenerator().render(summary),
        "form1040.txt": Form1040Generator().render(tax_return, form1040, repo.get_state_returns(tax_return_id)),
    }
    if output is None:
        for content in reports.values():
            typer.echo(content)
        return

    output.mkdir(parents=True, exist_ok=True)
    for name, content in reports.items():
        (output / name).write_text(content)
        typer.echo(f"  Generated: {output / name}")
