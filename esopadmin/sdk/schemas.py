"""Pydantic schemas for ESOP Admin entities.

All schemas use extra='forbid' to reject unknown fields, so a typo in an
import file or a hand-edited store row fails loudly instead of being
silently dropped.

Date fields are canonical YYYY-MM-DD strings. Validators accept anything
normalize_date() understands and store the canonical form.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .dates import normalize_date
from .schedule import ParsedVestingPair


VestStatus = Literal["pending", "vested", "lapsed"]
GrantStatus = Literal["draft", "active", "cancelled"]


def _now() -> str:
    return datetime.now().isoformat(timespec="seconds")


def _canonical(value: Optional[str], field_name: str) -> Optional[str]:
    if value is None:
        return None
    canonical = normalize_date(value) if isinstance(value, str) else normalize_date(str(value))
    if canonical is None:
        raise ValueError(f"{field_name}: not a date: {value!r}")
    return canonical


# =============================================================================
# Stored entities
# =============================================================================


class Employee(BaseModel):
    """An employee who holds (or may hold) grants."""

    model_config = ConfigDict(extra="forbid")

    id: str
    name: str = Field(..., min_length=1)
    employee_code: str = Field(..., min_length=1, description="Unique HR code")
    personal_email: Optional[str] = None
    official_email: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    join_date: Optional[str] = None
    exit_date: Optional[str] = Field(default=None, description="Set when the employee leaves")
    created_at: str = Field(default_factory=_now)

    @field_validator("join_date", "exit_date", mode="before")
    @classmethod
    def _dates(cls, value, info):
        return _canonical(value, info.field_name)

    @property
    def contact_email(self) -> Optional[str]:
        """Address grant letters go to: personal first, then official."""
        return self.personal_email or self.official_email


class Grant(BaseModel):
    """An award of options to one employee."""

    model_config = ConfigDict(extra="forbid")

    id: str
    grant_number: str = Field(..., pattern=r"^G-\d{4,}$")
    employee_id: str
    grant_date: str
    total_options: int = Field(..., gt=0)
    status: GrantStatus = "active"
    source_file: Optional[str] = None
    letter_path: Optional[str] = None
    letter_signed: bool = False
    notes: Optional[str] = None
    created_at: str = Field(default_factory=_now)

    @field_validator("grant_date", mode="before")
    @classmethod
    def _grant_date(cls, value, info):
        return _canonical(value, info.field_name)


class VestingEvent(BaseModel):
    """A scheduled release of part of a grant."""

    model_config = ConfigDict(extra="forbid")

    id: str
    grant_id: str
    employee_id: str
    vest_date: str
    options_count: int = Field(..., gt=0)
    status: VestStatus = "pending"
    created_at: str = Field(default_factory=_now)

    @field_validator("vest_date", mode="before")
    @classmethod
    def _vest_date(cls, value, info):
        return _canonical(value, info.field_name)


class Valuation(BaseModel):
    """Fair value per option effective from a date."""

    model_config = ConfigDict(extra="forbid")

    id: str
    effective_date: str
    fair_value: float = Field(..., ge=0)
    note: Optional[str] = None
    created_at: str = Field(default_factory=_now)

    @field_validator("effective_date", mode="before")
    @classmethod
    def _effective_date(cls, value, info):
        return _canonical(value, info.field_name)


class GrantLetter(BaseModel):
    """An uploaded grant-letter document and the grant it was matched to."""

    model_config = ConfigDict(extra="forbid")

    id: str
    grant_id: Optional[str] = None
    grant_number: Optional[str] = None
    filename: str
    storage_path: str
    file_size: Optional[int] = None
    matched: bool = False
    uploaded_at: str = Field(default_factory=_now)


# =============================================================================
# Bulk import
# =============================================================================


class GrantImportRow(BaseModel):
    """One validated bulk-import row: an employee plus one grant."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    employee_code: str = Field(..., min_length=1)
    grant_date: str
    total_options: int = Field(..., gt=0)
    vesting_schedule: List[ParsedVestingPair] = Field(default_factory=list)
    email: Optional[str] = None
    official_email: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    exit_date: Optional[str] = None
    notes: Optional[str] = None
    source_file: Optional[str] = None

    @field_validator("grant_date", "exit_date", mode="before")
    @classmethod
    def _dates(cls, value, info):
        return _canonical(value, info.field_name)

    @property
    def scheduled_options(self) -> int:
        return sum(pair.quantity for pair in self.vesting_schedule)
