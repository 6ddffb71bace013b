"""Unit tests for bearer token handling and role checks."""

from datetime import timedelta

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from libs.auth.dependencies import create_access_token, get_current_user, require_staff
from libs.auth.models import AuthUser, Role
from libs.common.errors import AuthenticationError, PermissionDeniedError
from starlette.requests import Request


def _request() -> Request:
    return Request({"type": "http", "method": "GET", "path": "/", "headers": []})


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.mark.asyncio
async def test_valid_token_populates_user_and_request_state():
    request = _request()
    token = create_access_token("user-1", Role.PASTOR, email="pastor@church.org")

    user = await get_current_user(request, _credentials(token))

    assert user.user_id == "user-1"
    assert user.role == Role.PASTOR
    assert request.state.user is user


@pytest.mark.asyncio
async def test_missing_token_is_rejected():
    with pytest.raises(AuthenticationError):
        await get_current_user(_request(), None)


@pytest.mark.asyncio
async def test_expired_token_is_rejected():
    token = create_access_token("user-1", expires_delta=timedelta(minutes=-1))
    with pytest.raises(AuthenticationError):
        await get_current_user(_request(), _credentials(token))


@pytest.mark.asyncio
async def test_tampered_token_is_rejected():
    token = create_access_token("user-1") + "x"
    with pytest.raises(AuthenticationError):
        await get_current_user(_request(), _credentials(token))


@pytest.mark.asyncio
async def test_staff_check():
    leader = AuthUser(user_id="u-1", role=Role.LEADER)
    member = AuthUser(user_id="u-2", role=Role.MEMBER)

    assert await require_staff(leader) is leader
    with pytest.raises(PermissionDeniedError):
        await require_staff(member)
