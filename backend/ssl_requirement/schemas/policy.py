"""Pydantic schemas describing declared SSL policy."""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SslMode(str, Enum):
    REQUIRE = "require"
    ALLOW = "allow"
    EXCEPTION = "exception"
    # Nothing declared for the action and the group has no exceptions list.
    EXCEPTION_DEFAULT = "exception_default"

    @property
    def wants_plain_http(self) -> bool:
        return self in (SslMode.EXCEPTION, SslMode.EXCEPTION_DEFAULT)


class ActionKey(BaseModel):
    group: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.group}#{self.action}"
