"""ESOP Admin - option grant, vesting and valuation tooling."""

__version__ = "0.1.0"
