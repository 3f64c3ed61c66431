from __future__ import annotations

from fastapi import Depends, Header, Request
from fastapi.security.utils import get_authorization_scheme_param
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.errors import Unauthorized
from ..core.security import decode_token
from ..db.session import get_db
from ..middlewares import principal_ctx_var
from ..services.authorization import RequestContext
from ..services.identity import LocalIdentityProvider, UserIdentity


def _set_principal(request: Request, principal: str) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


def resolve_principal(request: Request, authorization: str | None) -> UserIdentity | None:
    """Decode a bearer token into the caller identity.

    A missing header yields ``None`` so the gate can report ``Unauthorized``;
    a malformed or expired token fails immediately.
    """

    if not authorization:
        return None
    scheme, credentials = get_authorization_scheme_param(authorization)
    if scheme.lower() != "bearer" or not credentials:
        raise Unauthorized("Authorization must be a bearer token")
    try:
        payload = decode_token(credentials, verify_type="access")
    except ValueError as exc:
        raise Unauthorized(str(exc)) from exc
    _set_principal(request, f"user:{payload.sub}")
    request.state.token_payload = payload
    return UserIdentity(id=payload.sub, name=payload.name, email=payload.email)


async def get_request_context(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> RequestContext:
    principal = resolve_principal(request, authorization)
    org_id = request.headers.get(settings.ORG_HEADER)
    return RequestContext(identity=LocalIdentityProvider(db, principal), org_id=org_id)
