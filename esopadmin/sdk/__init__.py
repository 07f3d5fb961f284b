"""ESOP Admin SDK - vesting, valuation and import logic.

The calculation core (dates, schedule, grant_numbers, valuations, vesting)
is pure: values in, values out, no I/O. Everything that touches the store,
the filesystem or the extraction CLI lives in the other modules.
"""

from .config import (
    get_config_dir,
    get_settings_path,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    get_company_profile_path,
    load_company_profile,
    save_company_profile,
    get_data_path,
    ConfigNotFoundError,
)

from .dates import (
    normalize_date,
    coerce_date,
    resolve_as_of,
    expand_two_digit_year,
)

from .schedule import (
    ParsedVestingPair,
    parse_vesting_pair,
    parse_vesting_schedule,
    format_vesting_schedule,
)

from .grant_numbers import (
    match_grant_number,
    format_grant_number,
    next_grant_number,
)

from .valuations import (
    resolve_fair_value,
    resolve_valuation,
)

from .vesting import (
    VestingSummary,
    classify_event,
    compute_vesting,
    derive_event_status,
    percent_vested,
    sum_vesting,
)

from .store import (
    Store,
    RecordNotFoundError,
    get_store,
)

from . import imports
from . import portfolio
from . import letters

__all__ = [
    # Config
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "save_settings",
    "get_setting",
    "set_setting",
    "get_company_profile_path",
    "load_company_profile",
    "save_company_profile",
    "get_data_path",
    "ConfigNotFoundError",
    # Dates
    "normalize_date",
    "coerce_date",
    "resolve_as_of",
    "expand_two_digit_year",
    # Schedule parsing
    "ParsedVestingPair",
    "parse_vesting_pair",
    "parse_vesting_schedule",
    "format_vesting_schedule",
    # Grant numbers
    "match_grant_number",
    "format_grant_number",
    "next_grant_number",
    # Valuations
    "resolve_fair_value",
    "resolve_valuation",
    # Vesting
    "VestingSummary",
    "classify_event",
    "compute_vesting",
    "derive_event_status",
    "percent_vested",
    "sum_vesting",
    # Store
    "Store",
    "RecordNotFoundError",
    "get_store",
    # Modules
    "imports",
    "portfolio",
    "letters",
]
