import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_bootstrap.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace
from typing import AsyncGenerator, Dict

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from main import app
from app.auth.permissions import Actor
from app.core.database import get_async_session
from app.core.security import create_access_token
from app.db.base import utcnow
from app.db.seeds.init_roles_data import create_user_with_role, seed_roles
from app.models.base import Base
import app.models as models  # noqa: F401  registers every table
from app.models.finance.loan import Loan
from app.models.finance.personal_savings import PersonalSavings
from app.models.finance.savings import Savings
from app.models.member.biodata import Biodata
from app.models.shared.enums import SavingsStatus
from app.services.auth.user_service import UserService
from tests.factories import PASSWORD


TEST_USERS = [
    ("superadmin", "SUPER_ADMIN"),
    ("chairman", "CHAIRMAN"),
    ("treasurer", "TREASURER"),
    ("admin", "ADMIN"),
    ("admin2", "ADMIN"),
    ("member", "MEMBER"),
    ("member2", "MEMBER"),
]


@pytest.fixture
async def db_engine(tmp_path):
    """Fresh SQLite database file per test"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as s:
        yield s


@pytest.fixture
async def seeded(session_maker) -> SimpleNamespace:
    """Roles, one user per role and a member with loan and savings records"""
    async with session_maker() as s:
        await seed_roles(s)

        users: Dict[str, int] = {}
        for username, role_name in TEST_USERS:
            user = await create_user_with_role(
                s, username, PASSWORD, role_name, is_member=role_name == "MEMBER"
            )
            users[username] = user.id

        expired = await create_user_with_role(
            s, "expired_admin", PASSWORD, "ADMIN", expires_at=utcnow() - timedelta(days=1)
        )
        users["expired_admin"] = expired.id

        biodata = Biodata(
            user_id=users["member"],
            erp_id="ERP-0001",
            first_name="Ada",
            last_name="Okafor",
            department="Accounts",
            email_address="ada@example.com",
            phone_number="08030000001",
        )
        s.add(biodata)
        await s.flush()

        savings = Savings(biodata_id=biodata.id, balance=Decimal("50000.00"), monthly_target=Decimal("5000.00"))
        loan = Loan(biodata_id=biodata.id, principal_amount=Decimal("100000.00"),
                    tenure_months=12, purpose="School fees")
        plan = PersonalSavings(biodata_id=biodata.id, plan_name="Holiday", balance=Decimal("20000.00"),
                               status=SavingsStatus.ACTIVE)
        s.add_all([savings, loan, plan])
        await s.commit()

        return SimpleNamespace(
            users=users,
            biodata_id=biodata.id,
            savings_id=savings.id,
            loan_id=loan.id,
            personal_savings_id=plan.id,
        )


@pytest.fixture
async def actors(seeded, session_maker) -> Dict[str, Actor]:
    async with session_maker() as s:
        service = UserService(s)
        return {name: await service.get_actor(user_id) for name, user_id in seeded.users.items()}


@pytest.fixture
def auth_headers(seeded):
    """Build bearer headers for a seeded username"""
    def _headers(username: str) -> dict:
        token = create_access_token(seeded.users[username])
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """API client bound to the per-test database"""
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as s:
            yield s

    app.dependency_overrides[get_async_session] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
