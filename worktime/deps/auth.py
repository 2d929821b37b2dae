import logging
from typing import Tuple

from fastapi import HTTPException, Request

from worktime.services.auth_service import verify_token

logger = logging.getLogger(__name__)


def _parse_bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="Missing Authorization header")

    parts = auth_header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise HTTPException(status_code=401, detail="Invalid Authorization header")

    return parts[1].strip()


def require_auth(request: Request) -> Tuple[str, int]:
    token = _parse_bearer_token(request)

    try:
        claims = verify_token(token)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    user_id = str(claims.get("sub"))
    try:
        token_client_id = int(claims.get("client_id"))
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=401, detail="Invalid token claims") from exc

    header_client_id = request.headers.get("X-Client-Id")
    if header_client_id is None:
        raise HTTPException(status_code=403, detail="Missing X-Client-Id header")

    try:
        header_client_id_int = int(header_client_id)
    except ValueError as exc:
        raise HTTPException(status_code=403, detail="Invalid X-Client-Id header") from exc

    if header_client_id_int != token_client_id:
        logger.warning(
            "Client mismatch",
            extra={"client_id": token_client_id, "header_client_id": header_client_id_int, "path": request.url.path},
        )
        raise HTTPException(
            status_code=403,
            detail=f"Client mismatch: token is scoped to client {token_client_id}, not {header_client_id_int}",
        )

    request.state.user_id = user_id
    request.state.client_id = token_client_id
    request.state.claims = claims

    return user_id, token_client_id
