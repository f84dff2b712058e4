"""
Enumerations and pydantic models shared across the stream library.
"""

import logging
from typing import Optional
from enum import Enum
from pydantic import BaseModel, Field, field_validator, ConfigDict


class StageKind(str, Enum):
    """Intermediate operation kinds a pipeline stage can wrap"""
    FILTER = "filter"
    MAP = "map"
    FLAT_MAP = "flat_map"
    LIMIT = "limit"
    SKIP = "skip"
    DISTINCT = "distinct"
    SORTED = "sorted"
    PEEK = "peek"
    TAKE_WHILE = "take_while"
    DROP_WHILE = "drop_while"


class AccountStatus(str, Enum):
    """Account status enumeration"""
    ACTIVE = "active"
    BLOCKED = "blocked"
    REMOVED = "removed"


class Account(BaseModel):
    """Bank account used by the walkthrough and the grouping examples"""
    balance: int = Field(..., description="Account balance in whole units", ge=0)
    status: AccountStatus = Field(..., description="Current account status")

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "balance": 15000,
                "status": "active"
            }
        }
    )


class StreamSettings(BaseModel):
    """Process-wide settings for logging and terminal tracing"""
    log_level: str = Field(
        "WARNING",
        description="Root logging level name"
    )
    log_file: Optional[str] = Field(
        None,
        description="Optional file that receives a copy of the log output"
    )
    trace_terminals: bool = Field(
        False,
        description="Log element counts and timings of every terminal evaluation at INFO"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Accept any standard logging level name, case-insensitively."""
        level = str(v).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator('log_file')
    @classmethod
    def validate_log_file(cls, v):
        """Treat blank file names as unset."""
        if v is not None and not v.strip():
            return None
        return v
