"""Schedule D summary report generator."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from taxreturn.models.schedules import ScheduleD
from taxreturn.reports.filters import FILTERS

TEMPLATE_DIR = Path(__file__).parent / "templates"


class ScheduleDGenerator:
    def __init__(self) -> None:
        self.env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)), trim_blocks=True, lstrip_blocks=True)
        self.env.filters.update(FILTERS)

    def render(self, schedule_d: ScheduleD) -> str:
        """Render Schedule D totals."""
        template = self.env.get_template("schedule_d.txt")
        return template.render(sd=schedule_d)
