"""Principal extraction for vault requests."""

import re
from typing import Optional

from fastapi import Header, Request

from common.constants import PRINCIPAL_PATTERN
from vault.exceptions import InvalidPrincipalError, NotAuthenticatedError

_PRINCIPAL_RE = re.compile(PRINCIPAL_PATTERN)


def is_valid_principal(principal: str) -> bool:
    """
    Check the textual form of a principal id (dash-separated groups of up to 5 lowercase base32 chars).

    Args:
        principal: Principal text to check

    Returns:
        True if the text is a well-formed principal
    """
    return bool(principal) and _PRINCIPAL_RE.match(principal) is not None


async def get_current_principal(request: Request, authorization: Optional[str] = Header(None)) -> str:
    """
    FastAPI dependency extracting the caller's principal.

    Args:
        authorization: Authorization header value (format: "Bearer <principal>")

    Returns:
        Principal of the caller

    Raises:
        NotAuthenticatedError: If the header is missing or malformed
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise NotAuthenticatedError("Missing or invalid authorization header")

    principal = authorization[len("Bearer "):].strip()
    if not is_valid_principal(principal):
        raise NotAuthenticatedError("Malformed principal in authorization header")

    request.state.principal = principal
    return principal


def require_valid_principal(principal: str) -> str:
    """
    Raises:
        InvalidPrincipalError: If ``principal`` is malformed
    """
    if not is_valid_principal(principal):
        raise InvalidPrincipalError(f"Invalid principal: {principal}")
    return principal
