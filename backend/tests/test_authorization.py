"""Tests for the authentication/authorization guards."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import Depends, FastAPI, Request
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from socialhub.api.error_handling import register_exception_handlers
from socialhub.core.database import get_db
from socialhub.middleware import authentication, authorization, optional_authentication
from socialhub.models.user import Role
from socialhub.services.session import ResolvedSession
from socialhub.services.tokens import TokenKind, issue_credential_pair


def _build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/me")
    async def me(
        request: Request, session: ResolvedSession = Depends(authentication())
    ) -> dict:
        return {
            "id": str(request.state.user.id),
            "jti": request.state.decoded.jti,
            "same": request.state.user is session.user,
        }

    @app.get("/refresh-only")
    async def refresh_only(
        session: ResolvedSession = Depends(authentication(TokenKind.REFRESH)),
    ) -> dict:
        return {"kind": session.payload.kind}

    @app.get("/super")
    async def super_only(
        session: ResolvedSession = Depends(authorization(Role.SUPER_ADMIN)),
    ) -> dict:
        return {"role": session.user.role}

    @app.get("/users-only")
    async def users_only(
        session: ResolvedSession = Depends(authorization(Role.USER)),
    ) -> dict:
        return {"role": session.user.role}

    @app.get("/maybe")
    async def maybe(
        session: ResolvedSession | None = Depends(optional_authentication()),
    ) -> dict:
        return {"anonymous": session is None}

    return app


@pytest_asyncio.fixture
async def guard_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    app = _build_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def _headers(pair, refresh: bool = False) -> dict[str, str]:
    token = pair.refresh_token if refresh else pair.access_token
    return {"Authorization": f"{pair.token_type} {token}"}


@pytest.mark.asyncio
async def test_authentication_populates_request_state(guard_client, user_factory):
    user = await user_factory()
    pair = issue_credential_pair(user)
    response = await guard_client.get("/me", headers=_headers(pair))
    assert response.status_code == 200
    assert response.json() == {"id": str(user.id), "jti": pair.jti, "same": True}


@pytest.mark.asyncio
async def test_refresh_guard_takes_refresh_tokens_only(guard_client, user_factory):
    pair = issue_credential_pair(await user_factory())
    assert (await guard_client.get("/refresh-only", headers=_headers(pair, True))).status_code == 200
    assert (await guard_client.get("/refresh-only", headers=_headers(pair))).status_code == 400


@pytest.mark.asyncio
async def test_user_on_super_admin_route_is_forbidden(guard_client, user_factory, login_headers):
    """Test a valid standard identity gets forbidden, not an auth failure."""
    user = await user_factory()
    response = await guard_client.get("/super", headers=login_headers(user))
    assert response.status_code == 403
    assert response.json()["error_code"] == "forbidden"


@pytest.mark.asyncio
async def test_roles_have_no_implicit_hierarchy(guard_client, user_factory, login_headers):
    """Test an admin is not let into a user-only route."""
    admin = await user_factory(role=Role.ADMIN)
    super_admin = await user_factory(role=Role.SUPER_ADMIN)

    assert (await guard_client.get("/users-only", headers=login_headers(admin))).status_code == 403
    assert (await guard_client.get("/super", headers=login_headers(admin))).status_code == 403
    response = await guard_client.get("/super", headers=login_headers(super_admin))
    assert response.status_code == 200
    assert response.json() == {"role": "superAdmin"}


@pytest.mark.asyncio
async def test_authentication_runs_before_role_check(guard_client):
    response = await guard_client.get("/super", headers={"Authorization": "Admin garbage"})
    assert response.status_code == 400
    assert response.json()["error_code"] == "invalid_credential"


@pytest.mark.asyncio
async def test_optional_authentication(guard_client, user_factory, login_headers):
    assert (await guard_client.get("/maybe")).json() == {"anonymous": True}

    user = await user_factory()
    response = await guard_client.get("/maybe", headers=login_headers(user))
    assert response.json() == {"anonymous": False}

    response = await guard_client.get("/maybe", headers={"Authorization": "Bearer bad"})
    assert response.status_code == 400
