"""
Test configuration and fixtures.
Environment is set before portal is imported so settings, the engine and the
rate limiter are built for an in-memory SQLite database with limits off. The
app and the relay share portal.db.SessionLocal, so background relay work sees
the same database as the test session.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["AUTO_MIGRATE"] = "false"
os.environ["SENTRY_DSN"] = ""

import httpx
import pytest

from portal.db import Base, SessionLocal, engine
from portal.models import Admin, Agent, Client, Role
from portal.auth import get_password_hash, create_access_token
from portal.services.webhook_forwarder import WebhookForwarder


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Test client with startup/shutdown events run."""
    from fastapi.testclient import TestClient
    from portal.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_user(db_session):
    """Create an admin user for testing."""
    admin = Admin(
        username="root_admin",
        email="root@example.com",
        password_hash=get_password_hash("admin123"),
    )
    db_session.add(admin)
    db_session.commit()
    db_session.refresh(admin)
    return admin


@pytest.fixture
def client_user(db_session):
    """Create a client account for testing."""
    user = Client(
        username="acme",
        email="ops@acme.example.com",
        password_hash=get_password_hash("acme123"),
        company_name="Acme Corp",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def other_client_user(db_session):
    """A second client, used to check isolation."""
    user = Client(
        username="globex",
        email="ops@globex.example.com",
        password_hash=get_password_hash("globex123"),
        company_name="Globex",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def make_token(identity, role: Role) -> str:
    return create_access_token({"sub": identity.id, "username": identity.username, "role": role.value})


@pytest.fixture
def auth_headers(admin_user):
    """Authentication headers for the admin user."""
    return {"Authorization": f"Bearer {make_token(admin_user, Role.ADMIN)}"}


@pytest.fixture
def client_token(client_user):
    return make_token(client_user, Role.CLIENT)


@pytest.fixture
def client_auth_headers(client_token):
    """Authentication headers for the client user."""
    return {"Authorization": f"Bearer {client_token}"}


@pytest.fixture
def other_client_token(other_client_user):
    return make_token(other_client_user, Role.CLIENT)


@pytest.fixture
def other_client_auth_headers(other_client_token):
    return {"Authorization": f"Bearer {other_client_token}"}


def _add_agent(db_session, owner, **fields):
    agent = Agent(client_id=owner.id, **fields)
    db_session.add(agent)
    db_session.commit()
    db_session.refresh(agent)
    return agent


@pytest.fixture
def agent(db_session, client_user):
    """Active agent with a webhook."""
    return _add_agent(
        db_session, client_user,
        name="Support Bot", description="Answers support questions",
        webhook_url="http://agent.test/hook", is_active=True,
    )


@pytest.fixture
def unconfigured_agent(db_session, client_user):
    """Active agent without a webhook."""
    return _add_agent(db_session, client_user, name="Draft Bot", is_active=True)


@pytest.fixture
def inactive_agent(db_session, client_user):
    return _add_agent(
        db_session, client_user,
        name="Retired Bot", webhook_url="http://agent.test/hook", is_active=False,
    )


@pytest.fixture
def foreign_agent(db_session, other_client_user):
    """Agent owned by the other client."""
    return _add_agent(
        db_session, other_client_user,
        name="Globex Bot", webhook_url="http://globex.test/hook", is_active=True,
    )


@pytest.fixture
def webhook_calls():
    """Requests seen by the fake agent webhook."""
    return []


@pytest.fixture
def use_webhook(client, webhook_calls):
    """
    Point the running app's forwarder at a fake webhook.

    Call with a handler ``request -> httpx.Response``; every request is recorded
    in ``webhook_calls``.
    """
    def install(handler):
        def recording_handler(request: httpx.Request) -> httpx.Response:
            webhook_calls.append(request)
            return handler(request)

        client.app.state.relay.forwarder = WebhookForwarder(
            timeout=1.0,
            transport=httpx.MockTransport(recording_handler),
        )

    return install
