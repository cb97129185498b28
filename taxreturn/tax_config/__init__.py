"""Versioned tax configuration: lookup store and table import."""

from taxreturn.tax_config.loader import bundled_table_paths, import_tax_tables, load_tax_table_file
from taxreturn.tax_config.store import TaxConfigStore

__all__ = [
    "TaxConfigStore",
    "bundled_table_paths",
    "import_tax_tables",
    "load_tax_table_file",
]
