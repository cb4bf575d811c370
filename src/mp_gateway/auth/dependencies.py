"""FastAPI dependencies: get_current_user, require_admin.

Usage in any protected router:
    from src.mp_gateway.auth.dependencies import CallerIdentity, get_current_user

    @router.get("/protected")
    async def protected(caller: Annotated[CallerIdentity, Depends(get_current_user)]):
        ...
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.mp_common.enums import UserRole
from src.mp_common.errors import ForbiddenError, InvalidCredentialsError
from src.mp_gateway.auth.jwt_handler import decode_access_token

# Tokens come from the identity service; tokenUrl only feeds the Swagger "Authorize" button
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True)
class CallerIdentity:
    id: str
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CallerIdentity:
    """Trust the verified token claims as the caller identity.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    try:
        payload = decode_access_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    return CallerIdentity(
        id=str(payload["sub"]),
        email=str(payload.get("email", "")),
        role=str(payload.get("role", UserRole.BUYER.value)),
    )


async def require_admin(
    caller: CallerIdentity = Depends(get_current_user),
) -> CallerIdentity:
    """Raises HTTP 403 (AppError 1003) unless the caller has the ADMIN role."""
    if not caller.is_admin:
        raise ForbiddenError("Admin role required")
    return caller
