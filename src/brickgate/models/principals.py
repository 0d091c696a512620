"""
Principal model.

Principals are established upstream by the session layer from a request's
credentials; the engine only consumes the resulting value.
"""

from __future__ import annotations

from pydantic import Field, field_validator

from .base import FrozenGovernanceModel


class Principal(FrozenGovernanceModel):
    """
    A user, group or service principal performing a request.

    Attributes:
        name: Principal name (grants are keyed by it)
        is_admin: Admins hold every privilege on every securable implicitly
    """
    name: str = Field(..., min_length=1, description="Principal name")
    is_admin: bool = Field(False, description="Implicit holder of every privilege")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        if any(c.isspace() for c in v):
            raise ValueError(f"Principal name '{v}' must not contain whitespace")
        return v

    def __str__(self) -> str:
        return self.name
