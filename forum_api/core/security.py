"""
Security utilities for JWT authentication
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Union, Any
from joserfc import jwt as jose_jwt
from joserfc.jwk import OctKey
from joserfc.errors import BadSignatureError, DecodeError, InvalidTokenError, JoseError
from fastapi import HTTPException, status
import structlog

from forum_api.core.config import JWT_CONFIG

logger = structlog.get_logger()

ALGORITHM = JWT_CONFIG["algorithm"]
ACCESS_TOKEN_EXPIRE_MINUTES = JWT_CONFIG["access_token_expire_minutes"]
ISSUER = JWT_CONFIG["issuer"]

# joserfc key object (reusable)
_jwt_key = OctKey.import_key(JWT_CONFIG["secret_key"])


def _credentials_error(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(
    subject: Union[str, Any],
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict] = None
) -> str:
    """
    Create JWT access token

    Args:
        subject: Token subject (the host platform user id)
        expires_delta: Custom expiration time
        additional_claims: Additional claims to include in token

    Returns:
        Encoded JWT token
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode = {
        "exp": int(expire.timestamp()),
        "sub": str(subject),
        "type": "access",
        "iss": ISSUER,
        "iat": int(now.timestamp())
    }

    if additional_claims:
        to_encode.update(additional_claims)

    encoded_jwt = jose_jwt.encode({"alg": ALGORITHM}, to_encode, _jwt_key)

    logger.debug("Access token created", subject=subject, expires=expire)
    return encoded_jwt


def verify_token(token: str, token_type: str = "access") -> str:
    """
    Verify JWT token and return subject

    Raises:
        HTTPException: 401 if the token is malformed, expired, of the wrong type
            or issued by someone else
    """
    try:
        token_obj = jose_jwt.decode(token, _jwt_key, algorithms=[ALGORITHM])
    except (BadSignatureError, DecodeError, InvalidTokenError, JoseError, ValueError) as exc:
        logger.warning("JWT verification failed", error=str(exc))
        raise _credentials_error("Could not validate credentials")

    payload = token_obj.claims

    if payload.get("type") != token_type:
        logger.warning("Invalid token type", expected=token_type, actual=payload.get("type"))
        raise _credentials_error("Invalid token type")

    subject = payload.get("sub")
    if not subject:
        logger.warning("Token missing subject")
        raise _credentials_error("Invalid token: missing subject")

    exp = payload.get("exp")
    if not isinstance(exp, (int, float)) or datetime.now(timezone.utc).timestamp() > exp:
        logger.warning("Token expired", subject=subject)
        raise _credentials_error("Token expired")

    issuer = payload.get("iss")
    if issuer != ISSUER:
        logger.warning("Token issuer is not trusted", issuer=issuer)
        raise _credentials_error("Untrusted token issuer")

    logger.debug("Token verified successfully", subject=subject, type=token_type)
    return str(subject)
