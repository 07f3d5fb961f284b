"""Field access shared by the calculators.

Calculators take rows straight from the store (plain dicts) as well as
pydantic models, so fields are read by name from either.
"""

from typing import Any


def row_value(row: Any, *names: str, default: Any = None) -> Any:
    """Return the first present, non-None field among names."""
    for name in names:
        if isinstance(row, dict):
            value = row.get(name)
        else:
            value = getattr(row, name, None)
        if value is not None:
            return value
    return default
