"""Tax computation engines."""

from taxreturn.engines.brackets import compute_tax, effective_rate, marginal_rate, validate_brackets
from taxreturn.engines.capital_gains import CapitalGainsAggregator
from taxreturn.engines.return_aggregator import CalculationResult, ReturnAggregator

__all__ = [
    "CalculationResult",
    "CapitalGainsAggregator",
    "ReturnAggregator",
    "compute_tax",
    "effective_rate",
    "marginal_rate",
    "validate_brackets",
]
