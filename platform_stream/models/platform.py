"""Pydantic models for the platform and operator descriptors supplied by callers."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PlatformDescriptor(BaseModel):
    """Third-party platform to drive: target URL plus login credentials."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default="", alias="_id")
    platform_name: str = Field(default="", alias="platformName")
    url: str
    email: str = ""
    password: str = Field(default="", repr=False)

    @property
    def display_name(self) -> str:
        return self.platform_name or self.url


class IdentityDescriptor(BaseModel):
    """The operator on whose behalf the session runs."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default="", alias="_id")
    full_name: str = Field(default="", alias="fullName")


class StartSessionRequest(BaseModel):
    """Payload of a start-session command."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    platform: PlatformDescriptor
    identity: IdentityDescriptor = Field(default_factory=IdentityDescriptor, alias="employee")
    auto_login: bool = Field(default=True, alias="autoLogin")
