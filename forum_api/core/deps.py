"""
FastAPI Dependencies
Authentication, database and permission enforcement
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from forum_api.core.config import settings
from forum_api.core.database import get_db
from forum_api.core.exceptions import InvalidDeclaration
from forum_api.core.permission_resolver import PermissionResolver
from forum_api.core.rbac import PermissionDeclaration
from forum_api.core.resource_resolution import RequestContext
from forum_api.core.security import verify_token
from forum_api.services.permission import build_resolver, permission_service

logger = structlog.get_logger()

# Security schemes
security = HTTPBearer(auto_error=False)

GUEST_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

# Single outward message for every denial, whatever the internal reason
FORBIDDEN_DETAIL = "Insufficient permissions"


@dataclass(frozen=True)
class Caller:
    user_id: Optional[str]
    roles: frozenset

    @property
    def is_guest(self) -> bool:
        return self.user_id is None


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> Optional[str]:
    """
    Host platform user id from the bearer token, or None for anonymous callers

    Raises:
        HTTPException: If a token is present but invalid
    """
    if not credentials:
        return None
    return verify_token(credentials.credentials, token_type="access")


def get_permission_resolver(db: AsyncSession = Depends(get_db)) -> PermissionResolver:
    return build_resolver(db)


async def build_request_context(request: Request) -> RequestContext:
    """
    Route parameters (path first, then query string) and the JSON body.
    A missing or non-object body reads as empty.
    """
    route_params = {**request.query_params, **request.path_params}

    body = {}
    content_type = request.headers.get("content-type", "")
    if request.method in BODY_METHODS and content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            body = payload

    return RequestContext(route_params=route_params, body=body)


def require_permission(*declarations: PermissionDeclaration):
    """
    Dependency factory enforcing permission declarations

    Every declaration must evaluate to allowed. Declarations are checked
    here, when the endpoint module is imported, so a malformed one stops
    the application from starting.

    Returns:
        Dependency function resolving to the authorized Caller
    """
    for declaration in declarations:
        if not isinstance(declaration, PermissionDeclaration):
            raise InvalidDeclaration(f"Not a permission declaration: {declaration!r}")
    declared = tuple(declarations)

    async def permission_checker(
        request: Request,
        user_id: Optional[str] = Depends(get_current_user_id),
        db: AsyncSession = Depends(get_db),
        resolver: PermissionResolver = Depends(get_permission_resolver),
    ) -> Caller:
        if user_id is None and not (settings.ALLOW_GUEST_ACCESS and request.method in GUEST_METHODS):
            logger.debug("Permission check failed: user not authenticated", method=request.method)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
                headers={"WWW-Authenticate": "Bearer"},
            )

        try:
            roles = await permission_service.get_caller_roles(db, user_id)
        except Exception as e:
            logger.error("Role lookup failed", user_id=user_id or "guest", error=str(e))
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN_DETAIL)

        caller = Caller(user_id=user_id, roles=frozenset(roles))
        if not declared:
            return caller

        context = await build_request_context(request)
        decision = await resolver.authorize_request(caller.roles, declared, context)

        if not decision.allowed:
            logger.info(
                "Permission denied",
                user_id=user_id or "guest",
                path=request.url.path,
                **decision.to_log(),
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN_DETAIL)

        logger.debug(
            "Permission check passed",
            user_id=user_id or "guest",
            permissions=[d.permission for d in declared],
        )
        return caller

    return permission_checker

