"""
Authentication Module

Resolves the requester identity and roles for API calls. Identity is
verified upstream (OAuth login and session handling); this module trusts
the identity headers set by the authenticating proxy.
"""

import os
from typing import Protocol

from fastapi import Depends, Header, HTTPException, status
from pydantic import BaseModel

from ..config import WorkflowConfig
from .dependencies import get_config

ROLE_APPROVER = "approver"
ROLE_DISBURSER = "disburser"
ROLE_ADMIN = "admin"


class Identity(BaseModel):
    """Authenticated user model."""

    email: str
    name: str
    roles: list[str] = []

    def has_role(self, role: str) -> bool:
        return role in self.roles or ROLE_ADMIN in self.roles


class RoleDirectory(Protocol):
    """Looks up the roles of an email address."""

    def roles_for(self, email: str) -> list[str]:
        ...


class ConfigRoleDirectory:
    """Role directory backed by the ``users`` list in training_funds.yaml."""

    def __init__(self, config: WorkflowConfig):
        self._roles = {
            str(user.get("email", "")).lower(): list(user.get("roles", []))
            for user in config.users
        }

    def roles_for(self, email: str) -> list[str]:
        return list(self._roles.get(email.lower(), []))


def get_role_directory(config: WorkflowConfig = Depends(get_config)) -> RoleDirectory:
    return ConfigRoleDirectory(config)


async def get_current_identity(
    x_requester_email: str | None = Header(None, alias="X-Requester-Email"),
    x_requester_name: str | None = Header(None, alias="X-Requester-Name"),
    config: WorkflowConfig = Depends(get_config),
    roles: RoleDirectory = Depends(get_role_directory),
) -> Identity:
    """Get current identity from request headers.

    Raises:
        HTTPException: If no identity is present or its domain is not allowed
    """
    if not x_requester_email:
        # Development mode: allow requests without a proxy in front
        if os.getenv("ENVIRONMENT", "production") == "development":
            return Identity(email="dev@localhost", name="Developer", roles=[ROLE_ADMIN])
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )

    email = x_requester_email.strip()
    if config.allowed_domain and not email.lower().endswith(f"@{config.allowed_domain.lower()}"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Only @{config.allowed_domain} accounts are allowed",
        )

    return Identity(
        email=email,
        name=(x_requester_name or email).strip(),
        roles=roles.roles_for(email),
    )
