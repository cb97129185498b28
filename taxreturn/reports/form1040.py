"""Form 1040 summary report generator."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from taxreturn.models.tax_return import Form1040, StateTaxReturn, TaxReturn
from taxreturn.reports.filters import FILTERS

TEMPLATE_DIR = Path(__file__).parent / "templates"


class Form1040Generator:
    """Generates a human-readable Form 1040 and state summary."""

    def __init__(self) -> None:
        self.env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)), trim_blocks=True, lstrip_blocks=True)
        self.env.filters.update(FILTERS)

    def render(
        self,
        tax_return: TaxReturn,
        form1040: Form1040,
        state_returns: list[StateTaxReturn] | None = None,
        warnings: list[str] | None = None,
    ) -> str:
        template = self.env.get_template("form1040.txt")
        return template.render(
            ret=tax_return,
            f=form1040,
            states=state_returns or [],
            warnings=warnings or [],
        )
