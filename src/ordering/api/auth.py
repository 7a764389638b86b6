"""Caller identity as resolved by the authentication layer in front of us.

Tokens are verified upstream; by the time a request reaches this service the
caller is carried in the ``X-User-Id`` and ``X-User-Role`` headers.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header

from ordering.errors import Forbidden, Unauthenticated


@dataclass(frozen=True)
class Caller:
    user_id: str
    role: str = "customer"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def optional_caller(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
) -> Caller | None:
    if not x_user_id:
        return None
    return Caller(user_id=x_user_id, role=(x_user_role or "customer").lower())


def require_user(caller: Annotated[Caller | None, Depends(optional_caller)]) -> Caller:
    if caller is None:
        raise Unauthenticated("Not authorized, no token")
    return caller


def require_admin(caller: Annotated[Caller, Depends(require_user)]) -> Caller:
    if not caller.is_admin:
        raise Forbidden("Not authorized as an admin")
    return caller
