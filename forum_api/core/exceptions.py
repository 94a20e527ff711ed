"""
Domain exceptions for the forum service.

Every error carries a machine-readable code, an HTTP status for the API edge
and a details mapping that is only ever written to logs.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ForumError(Exception):
    def __init__(
        self,
        message: str,
        *,
        code: str = "FORUM_ERROR",
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details: Dict[str, Any] = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:  # pragma: no cover
        return self.message


class InvalidDeclaration(ForumError):
    """A permission declaration is malformed. Raised at registration time."""

    def __init__(self, message: str, permission: Optional[str] = None, **kwargs: Any):
        details: Dict[str, Any] = {"permission": permission} if permission else {}
        details.update(kwargs)
        super().__init__(
            message=message,
            code="INVALID_DECLARATION",
            status_code=500,
            details=details,
        )


class ResourceResolutionError(ForumError):
    """The resource a declaration points at cannot be located for this request."""

    reason = "resolution_failed"

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(
            message=message,
            code="RESOURCE_RESOLUTION_FAILED",
            status_code=403,
            details=dict(kwargs),
        )


class MissingResource(ResourceResolutionError):
    """The request does not carry a usable resource identifier."""

    reason = "missing_resource"


class ResourceNotFound(ResourceResolutionError):
    """A parent entity needed to derive the resource does not exist."""

    reason = "resource_not_found"


class EntityNotFound(ForumError):
    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            message=f"{entity} not found",
            code="NOT_FOUND",
            status_code=404,
            details={"entity": entity, "id": entity_id},
        )
