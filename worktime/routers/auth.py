from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from worktime.core.config import dev_tokens_enabled
from worktime.services.auth_service import create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])


class TokenRequest(BaseModel):
    user_id: str
    client_id: int
    role: str = "CLIENT"


@router.post("/token")
def issue_token(payload: TokenRequest):
    if not dev_tokens_enabled():
        raise HTTPException(status_code=404, detail="Not Found")
    try:
        token = create_access_token(
            user_id=str(payload.user_id),
            client_id=int(payload.client_id),
            role=payload.role,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return {
        "access_token": token,
        "token_type": "bearer",
    }
