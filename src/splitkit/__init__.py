"""splitkit - exact expense splitting, balance netting and settlement planning."""

__version__ = "0.1.0"
