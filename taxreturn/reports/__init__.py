"""Plain-text report generation."""

from taxreturn.reports.form1040 import Form1040Generator
from taxreturn.reports.form8949 import Form8949Generator
from taxreturn.reports.schedule_d import ScheduleDGenerator

__all__ = [
    "Form1040Generator",
    "Form8949Generator",
    "ScheduleDGenerator",
]
