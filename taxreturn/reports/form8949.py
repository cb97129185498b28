"""Form 8949 report generator."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from taxreturn.models.enums import Form8949Category
from taxreturn.models.schedules import Form8949Row
from taxreturn.reports.filters import FILTERS

TEMPLATE_DIR = Path(__file__).parent / "templates"

SHORT_TERM_BOXES = (Form8949Category.A, Form8949Category.B, Form8949Category.C)
LONG_TERM_BOXES = (Form8949Category.D, Form8949Category.E, Form8949Category.F)


class Form8949Generator:
    """Renders Form 8949 rows grouped by part and checkbox."""

    def __init__(self) -> None:
        self.env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)), trim_blocks=True, lstrip_blocks=True)
        self.env.filters.update(FILTERS)

    @staticmethod
    def group(rows: list[Form8949Row]) -> dict[Form8949Category, list[Form8949Row]]:
        """Included rows by checkbox, in box order. Empty boxes are omitted."""
        grouped: dict[Form8949Category, list[Form8949Row]] = {}
        for category in SHORT_TERM_BOXES + LONG_TERM_BOXES:
            matching = [row for row in rows if row.category == category and not row.excluded]
            if matching:
                grouped[category] = matching
        return grouped

    def render(self, rows: list[Form8949Row]) -> str:
        grouped = self.group(rows)
        template = self.env.get_template("form8949.txt")
        return template.render(
            short_term={c: r for c, r in grouped.items() if c in SHORT_TERM_BOXES},
            long_term={c: r for c, r in grouped.items() if c in LONG_TERM_BOXES},
            flagged=[row for row in rows if row.needs_review],
        )
