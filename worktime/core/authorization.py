from enum import Enum

from fastapi import Depends, HTTPException, Request

from worktime.deps.auth import require_auth


class Role(Enum):
    ADMIN = "ADMIN"
    CLIENT = "CLIENT"


_RANK = {
    Role.CLIENT: 1,
    Role.ADMIN: 2,
}


def require_role(role: Role):
    def dependency(request: Request, _auth: tuple[str, int] = Depends(require_auth)):
        claim_role = request.state.claims.get("role") or Role.CLIENT.value

        try:
            user_role = Role(str(claim_role).upper())
        except ValueError as exc:
            raise HTTPException(status_code=403, detail="Invalid role claim") from exc

        if _RANK[user_role] < _RANK[role]:
            raise HTTPException(status_code=403, detail="Insufficient role")

        request.state.role = user_role.value
        return user_role

    return dependency
