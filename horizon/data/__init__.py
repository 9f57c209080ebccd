from horizon.data.csv_source import load_prices_csv
from horizon.data.models import PricePoint, Signal, SignalType, closes, slice_range, validate_series

__all__ = [
    "PricePoint",
    "Signal",
    "SignalType",
    "closes",
    "load_prices_csv",
    "slice_range",
    "validate_series",
]
