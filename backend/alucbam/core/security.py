"""
Principal resolution for authenticated endpoints.

Authentication itself is performed upstream (identity-aware proxy or API
gateway); this module only reads the verified identity it forwards.
"""

from dataclasses import dataclass, field
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from alucbam.core.logging import bind_principal


@dataclass(frozen=True)
class Principal:
    """The authenticated user on whose behalf a request runs."""

    subject: str
    email: str | None = None
    roles: tuple[str, ...] = field(default_factory=tuple)


async def get_current_principal(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_email: Annotated[str | None, Header()] = None,
    x_user_roles: Annotated[str | None, Header()] = None,
) -> Principal:
    """Build the current principal from the forwarded identity headers."""
    subject = (x_user_id or "").strip()
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authenticated principal required",
        )
    roles = tuple(
        sorted({role.strip() for role in (x_user_roles or "").split(",") if role.strip()})
    )
    bind_principal(subject)
    return Principal(subject=subject, email=x_user_email, roles=roles)


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
