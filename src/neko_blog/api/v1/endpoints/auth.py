"""Authentication endpoints: register, login and logout."""

from fastapi import APIRouter

from neko_blog.api.responses import ok
from neko_blog.schemas.common import Envelope
from neko_blog.schemas.user import LoginRequest, RegisterRequest, TokenResponse, UserProfile

from ..dependencies import AccountServiceDep, CurrentUserDep, TokenDep

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register")
def register_user(payload: RegisterRequest, accounts: AccountServiceDep) -> Envelope:
    user = accounts.register(payload.username, payload.password, payload.nickname)
    return ok(UserProfile.model_validate(user))


@router.post("/login")
def login_user(payload: LoginRequest, accounts: AccountServiceDep) -> Envelope:
    """Issue a bearer token; only the newest few tokens per user stay valid."""
    issued = accounts.login(payload.username, payload.password)
    return ok(
        TokenResponse(
            token=issued.token,
            uid=issued.user_id,
            expires_at=int(issued.expires_at.timestamp()),
        )
    )


@router.post("/logout")
def logout_user(
    current_user: CurrentUserDep, token: TokenDep, accounts: AccountServiceDep
) -> Envelope:
    accounts.logout(current_user.id, token)
    return ok()
