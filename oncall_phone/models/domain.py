# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models: pure data structures, NO FastAPI dependency.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# CSV header → canonical field
FILE_COLUMNS: dict[str, str] = {
    "Full Name": "full_name",
    "Ext": "extension",
    "Cell Phone": "cell_phone",
    "Primary Responsibility": "primary_responsibility",
    "Backup": "backup",
    "Email Address": "email",
}

# SQL column alias → canonical field
SQL_COLUMNS: dict[str, str] = {
    "fullName": "full_name",
    "extension": "extension",
    "cellPhone": "cell_phone",
    "primaryResponsibility": "primary_responsibility",
    "backup": "backup",
    "email": "email",
}


class Rotation(BaseModel):
    """One on-call schedule as listed by the roster service."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    description: Optional[str] = None
    timezone: Optional[str] = None


class OnCallParticipant(BaseModel):
    """Identity reference for whoever is on call for a rotation."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)


class UserProfile(BaseModel):
    """Resolved identity detail for a participant."""
    model_config = ConfigDict(frozen=True)

    account_id: str
    display_name: Optional[str] = None
    email: Optional[str] = None


class DirectoryRecord(BaseModel):
    """One row of the phone directory, in canonical shape."""
    model_config = ConfigDict(frozen=True)

    full_name: str = ""
    email: str = ""
    cell_phone: str = ""
    extension: str = ""
    primary_responsibility: str = ""
    backup: str = ""

    @classmethod
    def from_row(cls, row: dict[str, Any], columns: dict[str, str]) -> "DirectoryRecord":
        """Build a record from a source row using a column → field map."""
        values: dict[str, str] = {}
        for column, field in columns.items():
            raw = row.get(column)
            values[field] = "" if raw is None else str(raw).strip()
        return cls(**values)

    @property
    def has_phone(self) -> bool:
        return bool(self.cell_phone)

    @property
    def has_extension(self) -> bool:
        return bool(self.extension)
