"""Pydantic schemas for JWT tokens and the 2FA step."""

from __future__ import annotations

from pydantic import BaseModel, field_validator

TWO_FACTOR_CODE_MIN_LENGTH = 6


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class TwoFactorVerify(BaseModel):
    code: str


class TwoFactorSetup(BaseModel):
    """Enable (with a new code) or disable 2FA; the password is always re-checked."""

    enabled: bool
    password: str
    code: str | None = None

    @field_validator("code")
    @classmethod
    def _code(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if len(v) < TWO_FACTOR_CODE_MIN_LENGTH:
            raise ValueError(
                f"2FA code must be at least {TWO_FACTOR_CODE_MIN_LENGTH} characters"
            )
        return v


class TwoFactorStatus(BaseModel):
    two_factor_enabled: bool
