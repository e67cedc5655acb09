"""
Pytest configuration and fixtures for TravelFlow tests.

The settings are environment driven and cached on first import, so the
environment is pointed at a throwaway SQLite file before anything from
travelflow is imported.
"""
import os
import tempfile

_db_dir = tempfile.mkdtemp(prefix="travelflow-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'travelflow.db')}"
os.environ["ENVIRONMENT"] = "testing"
os.environ["BREVO_API_KEY"] = ""
os.environ["APP_BASE_URL"] = "https://app.travelflow.test"

import pytest
from fastapi.testclient import TestClient

from travelflow.database import Base, SessionLocal, engine, init_db
from travelflow.models import Tenant, Role, User, LEGACY_ADMIN_LABEL
from travelflow.core.context import resolve_context
from travelflow.core.permissions import ALL_MODULES
from travelflow.core.rate_limit import LoginRateLimiter
from travelflow.core.security import create_session_token, get_password_hash
from travelflow.api.deps import get_dispatcher, get_rate_limiter
from travelflow.main import app

PASSWORD = "correct horse battery staple"
# bcrypt is slow; hash once for every fixture user
PASSWORD_HASH = get_password_hash(PASSWORD)


class RecordingNotifier:
    """Notification dispatcher double that remembers what it was asked to send."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send(self, template_id, recipient, params):
        if self.fail:
            raise ConnectionError("email provider unreachable")
        self.sent.append({"template_id": template_id, "recipient": recipient, "params": params})
        return True

    @property
    def last_token(self):
        link = self.sent[-1]["params"]["INVITE_LINK"]
        return link.split("token=", 1)[1]


class FakeRedis:
    """The slice of the redis client API the login limiter uses."""

    def __init__(self):
        self.values = {}
        self.ttls = {}

    def incr(self, key):
        self.values[key] = self.values.get(key, 0) + 1
        return self.values[key]

    def expire(self, key, seconds):
        self.ttls[key] = seconds
        return True

    def ttl(self, key):
        return self.ttls.get(key, -1)

    def delete(self, key):
        self.values.pop(key, None)
        self.ttls.pop(key, None)
        return 1


@pytest.fixture(scope='session', autouse=True)
def _schema():
    """Create tables once for the whole run."""
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(autouse=True)
def cleanup_db():
    """Clear every table after each test, children first."""
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_tenant(db):
    def _make(name="Andes Travel"):
        tenant = Tenant(name=name, email=f"contact@{name.lower().replace(' ', '-')}.com")
        db.add(tenant)
        db.commit()
        return tenant
    return _make


@pytest.fixture
def make_role(db):
    def _make(tenant, name="Agente", permissions=("dashboard", "ventas"), is_default=False):
        role = Role(tenant_id=tenant.id, name=name, permissions=sorted(permissions), is_default=is_default)
        db.add(role)
        db.commit()
        return role
    return _make


@pytest.fixture
def make_user(db):
    def _make(tenant, email, role=None, legacy_role="", is_active=True):
        user = User(
            tenant_id=tenant.id,
            email=email,
            hashed_password=PASSWORD_HASH,
            full_name=email.split("@")[0].title(),
            role=legacy_role,
            is_active=is_active,
        )
        if role is not None:
            user.assign_role(role)
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture
def tenant(make_tenant):
    return make_tenant("Andes Travel")


@pytest.fixture
def other_tenant(make_tenant):
    return make_tenant("Patagonia Tours")


@pytest.fixture
def admin_role(make_role, tenant):
    return make_role(tenant, "Admin", ALL_MODULES, is_default=True)


@pytest.fixture
def agent_role(make_role, tenant):
    return make_role(tenant, "Agente", ("dashboard", "ventas", "clientes"))


@pytest.fixture
def admin_user(make_user, tenant, admin_role):
    return make_user(tenant, "maria@andes-travel.com", role=admin_role)


@pytest.fixture
def legacy_admin(make_user, tenant):
    """Founder account from before structured roles: label only."""
    return make_user(tenant, "founder@andes-travel.com", legacy_role=LEGACY_ADMIN_LABEL)


@pytest.fixture
def agent_user(make_user, tenant, agent_role):
    return make_user(tenant, "pedro@andes-travel.com", role=agent_role)


@pytest.fixture
def context_for(db):
    def _ctx(user):
        return resolve_context(db, {"sub": user.id, "tenant_id": user.tenant_id})
    return _ctx


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def client(notifier, fake_redis):
    """API client with the email and Redis collaborators replaced."""
    limiter = LoginRateLimiter(fake_redis, limit=3, window_seconds=900)
    app.dependency_overrides[get_dispatcher] = lambda: notifier
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_session_token(user)}"}
    return _headers
