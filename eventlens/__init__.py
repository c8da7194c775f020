"""EventLens - browse structured events and chart their numeric fields."""

__version__ = "0.1.0"
