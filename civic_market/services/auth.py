import logging
from dataclasses import dataclass

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from civic_market.core.errors import PermissionDenied, Unauthorized
from civic_market.core.security import decode_access_token
from civic_market.services.permissions import Role

log = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# role names issued by the legacy user service
_LEGACY_ROLES = {
    "prefeitura": Role.MUNICIPAL,
    "produtor": Role.PRODUCER,
    "cliente": Role.RESIDENT,
}


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: Role

    @property
    def is_municipal(self) -> bool:
        return self.role is Role.MUNICIPAL


def _role_from_claim(raw: str | None) -> Role | None:
    if raw is None:
        return None
    raw = str(raw).strip().lower()
    if raw in _LEGACY_ROLES:
        return _LEGACY_ROLES[raw]
    try:
        return Role(raw)
    except ValueError:
        return None


def principal_from_claims(claims: dict) -> Principal:
    user_id = claims.get("sub") or claims.get("id_usuario")
    role = _role_from_claim(claims.get("role") or claims.get("tipo_usuario"))
    if user_id is None or role is None:
        raise Unauthorized("Token is missing subject or role")
    return Principal(user_id=str(user_id), role=role)


async def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> Principal:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthorized("Missing bearer token")

    try:
        claims = decode_access_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        log.info("rejected token: %s", e)
        raise Unauthorized("Invalid or expired token")

    return principal_from_claims(claims)


def require_municipal(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_municipal:
        raise PermissionDenied("Municipal role required")
    return principal
