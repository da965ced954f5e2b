import uuid
from datetime import date, datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import api.models  # noqa: F401
from api.database import Base, get_db
from api.main import app
from api.models.company import Company
from api.models.item import Item
from api.models.phase import Category, Phase
from api.models.project import Project
from api.models.purchase import Purchase
from api.models.vendor import Vendor
from api.services.ai_client import get_ai_client
from api.services.auth_service import create_access_token
from scripts.seed import (
    DEMO_COMPANY_ID,
    USER_ADMIN_ID,
    USER_MANAGER_ID,
    USER_VIEWER_ID,
    seed_demo_company,
)

OTHER_COMPANY_ID = uuid.UUID("c0000000-0000-0000-0000-000000000002")
OTHER_ADMIN_ID = uuid.UUID("a0000000-0000-0000-0000-000000000201")


class FakeAIClient:
    """Stands in for GeminiClient: records prompts, returns `reply` or raises `error`."""

    def __init__(self, reply: str = "Generated answer", error: Exception = None):
        self.reply = reply
        self.error = error
        self.prompts = []

    @property
    def is_configured(self) -> bool:
        return True

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply

    async def aclose(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
async def engine():
    # One shared in-memory connection so every session sees the same data.
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def demo(db):
    """The seed script's demo company (Tech Plaza, Riverside Towers, Harbor Depot)."""
    data = await seed_demo_company(db)
    await db.commit()
    return data


@pytest.fixture
async def other_company(db):
    """A second tenant whose names overlap the demo company's but whose numbers do not."""
    company = Company(id=OTHER_COMPANY_ID, name="Rival Builders", slug="rival-builders")
    project = Project(
        company_id=OTHER_COMPANY_ID, name="Tech Plaza", client="Someone Else",
        budget=999, status="ongoing", start_date=date(2026, 1, 1),
    )
    db.add_all([company, project])
    await db.flush()
    phase = Phase(company_id=OTHER_COMPANY_ID, project_id=project.id, name="Grey", budget=10)
    vendor = Vendor(company_id=OTHER_COMPANY_ID, name="BuildCo Supplies")
    db.add_all([phase, vendor])
    await db.flush()
    category = Category(company_id=OTHER_COMPANY_ID, phase_id=phase.id, name="Misc")
    db.add(category)
    await db.flush()
    item = Item(company_id=OTHER_COMPANY_ID, category_id=category.id, name="Cement", unit="bag")
    db.add(item)
    await db.flush()
    db.add(Purchase(
        company_id=OTHER_COMPANY_ID, item_id=item.id, category_id=category.id,
        phase_id=phase.id, project_id=project.id, vendor_id=vendor.id,
        quantity=1000, price_per_unit=1, purchase_date=datetime.utcnow(),
    ))
    await db.commit()
    return {"company": company, "project": project, "phase": phase, "vendor": vendor}


# ---------------------------------------------------------------------------
# Generation client
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_ai():
    return FakeAIClient()


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


def _headers(user_id, company_id, role):
    token = create_access_token(str(user_id), str(company_id), role, f"{role}@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    return _headers(USER_ADMIN_ID, DEMO_COMPANY_ID, "admin")


@pytest.fixture
def manager_headers():
    return _headers(USER_MANAGER_ID, DEMO_COMPANY_ID, "manager")


@pytest.fixture
def viewer_headers():
    return _headers(USER_VIEWER_ID, DEMO_COMPANY_ID, "viewer")


@pytest.fixture
def other_admin_headers():
    return _headers(OTHER_ADMIN_ID, OTHER_COMPANY_ID, "admin")


@pytest.fixture
async def client(session_factory, fake_ai):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_client] = lambda: fake_ai
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
