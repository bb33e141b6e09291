"""User profile and follow graph endpoints."""

from fastapi import APIRouter

from neko_blog.api.responses import ok
from neko_blog.schemas.common import Envelope, IdList
from neko_blog.schemas.engagement import EngagementStateResponse
from neko_blog.schemas.user import UserProfile

from ..dependencies import AccountServiceDep, CurrentUserDep, FollowServiceDep

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me")
def read_current_user(current_user: CurrentUserDep) -> Envelope:
    return ok(UserProfile.model_validate(current_user))


@router.get("/{user_id}")
def read_user(user_id: int, accounts: AccountServiceDep) -> Envelope:
    return ok(UserProfile.model_validate(accounts.get_user(user_id)))


@router.get("/{user_id}/following")
def list_following(user_id: int, follows: FollowServiceDep) -> Envelope:
    return ok(IdList(ids=follows.following(user_id)))


@router.get("/{user_id}/followers")
def list_followers(user_id: int, follows: FollowServiceDep) -> Envelope:
    return ok(IdList(ids=follows.followers(user_id)))


@router.get("/{user_id}/status")
def follow_status(user_id: int, current_user: CurrentUserDep, follows: FollowServiceDep) -> Envelope:
    state = follows.status(current_user.id, user_id)
    return ok(EngagementStateResponse.from_state(state))


@router.post("/{user_id}/follow")
def follow_user(user_id: int, current_user: CurrentUserDep, follows: FollowServiceDep) -> Envelope:
    state = follows.follow(current_user.id, user_id)
    return ok(EngagementStateResponse.from_state(state))


@router.delete("/{user_id}/follow")
def unfollow_user(user_id: int, current_user: CurrentUserDep, follows: FollowServiceDep) -> Envelope:
    state = follows.unfollow(current_user.id, user_id)
    return ok(EngagementStateResponse.from_state(state))
