"""
Test configuration and fixtures.

Provides:
- Fresh schema per test (in-memory SQLite unless DATABASE_URL is set)
- Company/user/membership factories for every role
- A seeded, active checklist version with score items
- JWT-cookie AsyncClients per role
- Local storage backend pointed at tmp_path
"""
import os
import uuid
from dataclasses import dataclass
from typing import AsyncGenerator, Generator

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from fieldops.core.config import settings
from fieldops.core.deps import COOKIE_NAME, get_db
from fieldops.core.security import create_session_token
from fieldops.db.base import Base
from fieldops.db.enums import ChecklistItemType, ChecklistSection, Role
from fieldops.db.models import ChecklistItem, ChecklistTemplateVersion, Company, Inspection, Membership, User
from fieldops.db.session import SessionLocal, engine
from fieldops.main import app
from fieldops.schemas.auth import UserSession
from fieldops.schemas.checklist import ChecklistItemCreate, EnumOption, TemplateVersionCreate
from fieldops.schemas.inspection import InspectionCreate
from fieldops.services import inspection_service, template_service


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Session on a freshly created schema; dropped after each test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def local_storage(monkeypatch, tmp_path):
    """Store inspection files under tmp_path."""
    path = tmp_path / "inspection-files"
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "local", raising=False)
    monkeypatch.setattr(settings, "LOCAL_STORAGE_PATH", str(path), raising=False)
    return path


def make_company(db: Session, name: str = "Test Cleaning Co") -> Company:
    company = Company(id=uuid.uuid4(), name=name)
    db.add(company)
    db.commit()
    return company


def make_member(db: Session, company: Company, role: Role, name: str) -> User:
    user = User(
        id=uuid.uuid4(),
        email=f"{name.lower()}-{uuid.uuid4().hex[:8]}@test.com",
        display_name=name,
    )
    db.add(user)
    db.flush()
    db.add(
        Membership(
            id=uuid.uuid4(),
            user_id=user.id,
            organization_id=company.id,
            role=role.value,
        )
    )
    db.commit()
    return user


def session_for(user: User, company: Company, role: Role) -> UserSession:
    return UserSession(
        user_id=user.id,
        org_id=company.id,
        role=role,
        email=user.email,
        display_name=user.display_name,
    )


@pytest.fixture
def test_org(db: Session) -> Company:
    return make_company(db)


@pytest.fixture
def other_org(db: Session) -> Company:
    return make_company(db, name="Other Cleaning Co")


@pytest.fixture
def admin_user(db: Session, test_org: Company) -> User:
    return make_member(db, test_org, Role.ADMIN, "Admin")


@pytest.fixture
def dispatcher_user(db: Session, test_org: Company) -> User:
    return make_member(db, test_org, Role.DISPATCHER, "Dispatcher")


@pytest.fixture
def worker_user(db: Session, test_org: Company) -> User:
    return make_member(db, test_org, Role.WORKER, "Worker")


@pytest.fixture
def other_worker_user(db: Session, test_org: Company) -> User:
    return make_member(db, test_org, Role.WORKER, "Otherworker")


@pytest.fixture
def other_org_admin(db: Session, other_org: Company) -> User:
    return make_member(db, other_org, Role.ADMIN, "Outsider")


@pytest.fixture
def admin_session(admin_user: User, test_org: Company) -> UserSession:
    return session_for(admin_user, test_org, Role.ADMIN)


@pytest.fixture
def dispatcher_session(dispatcher_user: User, test_org: Company) -> UserSession:
    return session_for(dispatcher_user, test_org, Role.DISPATCHER)


@pytest.fixture
def worker_session(worker_user: User, test_org: Company) -> UserSession:
    return session_for(worker_user, test_org, Role.WORKER)


@pytest.fixture
def other_worker_session(other_worker_user: User, test_org: Company) -> UserSession:
    return session_for(other_worker_user, test_org, Role.WORKER)


@pytest.fixture
def other_org_session(other_org_admin: User, other_org: Company) -> UserSession:
    return session_for(other_org_admin, other_org, Role.ADMIN)


# =============================================================================
# Checklist Fixtures
# =============================================================================

@dataclass
class SeededChecklist:
    version: ChecklistTemplateVersion
    items: dict[str, ChecklistItem]

    def item_id(self, item_key: str) -> uuid.UUID:
        return self.items[item_key].id


def checklist_items() -> list[ChecklistItemCreate]:
    """Deliberately out of display order to exercise sorting."""
    return [
        ChecklistItemCreate(
            section=ChecklistSection.FINALIZATION,
            sort_order=1,
            item_key="deviation_reason",
            label="Deviation reason",
            item_type=ChecklistItemType.TEXTAREA,
            validation_rules={"max_length": 500},
        ),
        ChecklistItemCreate(
            section=ChecklistSection.CORE_QUALITY,
            sort_order=2,
            item_key="floor_score",
            label="Floor",
            item_type=ChecklistItemType.RATING,
            validation_rules={"min": 1, "max": 5},
        ),
        ChecklistItemCreate(
            section=ChecklistSection.CORE_QUALITY,
            sort_order=1,
            item_key="cleanliness_score",
            label="Cleanliness",
            item_type=ChecklistItemType.RATING,
            required=True,
            validation_rules={"min": 1, "max": 5},
        ),
        ChecklistItemCreate(
            section=ChecklistSection.META,
            sort_order=1,
            item_key="inspector_name",
            label="Inspector name",
            item_type=ChecklistItemType.TEXT,
            required=True,
            validation_rules={"max_length": 100},
        ),
        ChecklistItemCreate(
            section=ChecklistSection.MODULES,
            sort_order=1,
            item_key="windows_cleaned",
            label="Windows cleaned",
            item_type=ChecklistItemType.BOOLEAN,
        ),
        ChecklistItemCreate(
            section=ChecklistSection.MODULES,
            sort_order=2,
            item_key="rooms_count",
            label="Rooms",
            item_type=ChecklistItemType.INTEGER,
            validation_rules={"min": 0, "max": 50},
        ),
        ChecklistItemCreate(
            section=ChecklistSection.EXTRAS,
            sort_order=1,
            item_key="odor_level",
            label="Odor",
            item_type=ChecklistItemType.ENUM,
            enum_options=[
                EnumOption(value="none", label="None"),
                EnumOption(value="strong", label="Strong"),
            ],
        ),
        ChecklistItemCreate(
            section=ChecklistSection.EXTRAS,
            sort_order=2,
            item_key="extras_done",
            label="Extras",
            item_type=ChecklistItemType.MULTI_SELECT,
            enum_options=[
                EnumOption(value="fridge", label="Fridge"),
                EnumOption(value="oven", label="Oven"),
            ],
        ),
        ChecklistItemCreate(
            section=ChecklistSection.FINALIZATION,
            sort_order=2,
            item_key="completed_at",
            label="Completed at",
            item_type=ChecklistItemType.TIMESTAMP,
        ),
    ]


def seed_checklist(db: Session, session: UserSession, name: str = "v1") -> SeededChecklist:
    version = template_service.create_template_version(
        db,
        session,
        TemplateVersionCreate(name=name, activate=True, items=checklist_items()),
    )
    db.commit()
    items = template_service.get_version_items(db, session.org_id, version.id)
    return SeededChecklist(version=version, items={i.item_key: i for i in items})


@pytest.fixture
def checklist_factory(db: Session):
    """Seed and activate another checklist version for a given session's company."""
    def _seed(session: UserSession, name: str = "v1") -> SeededChecklist:
        return seed_checklist(db, session, name=name)
    return _seed


@pytest.fixture
def checklist(db: Session, admin_session: UserSession) -> SeededChecklist:
    return seed_checklist(db, admin_session)


@pytest.fixture
def inspection(
    db: Session,
    checklist: SeededChecklist,
    dispatcher_session: UserSession,
    worker_user: User,
) -> Inspection:
    """Open inspection assigned to worker_user, bound to the seeded checklist."""
    created = inspection_service.create_inspection(
        db,
        dispatcher_session,
        InspectionCreate(assigned_to_user_id=worker_user.id, notes="Kitchen deep clean"),
    )
    db.commit()
    return created


# =============================================================================
# Client Fixtures
# =============================================================================

def _token(user: User, company: Company, role: Role) -> str:
    return create_session_token(
        user_id=user.id,
        org_id=company.id,
        role=role.value,
        token_version=user.token_version,
    )


async def _client(db: Session, token: str | None, csrf: bool = True) -> AsyncGenerator[AsyncClient, None]:
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    cookies = {COOKIE_NAME: token} if token else None
    headers = {"X-Requested-With": "XMLHttpRequest"} if csrf else None
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies=cookies,
        headers=headers,
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated client."""
    async for c in _client(db, None):
        yield c


@pytest.fixture
async def admin_client(db, admin_user, test_org) -> AsyncGenerator[AsyncClient, None]:
    async for c in _client(db, _token(admin_user, test_org, Role.ADMIN)):
        yield c


@pytest.fixture
async def dispatcher_client(db, dispatcher_user, test_org) -> AsyncGenerator[AsyncClient, None]:
    async for c in _client(db, _token(dispatcher_user, test_org, Role.DISPATCHER)):
        yield c


@pytest.fixture
async def worker_client(db, worker_user, test_org) -> AsyncGenerator[AsyncClient, None]:
    async for c in _client(db, _token(worker_user, test_org, Role.WORKER)):
        yield c


@pytest.fixture
async def other_worker_client(db, other_worker_user, test_org) -> AsyncGenerator[AsyncClient, None]:
    async for c in _client(db, _token(other_worker_user, test_org, Role.WORKER)):
        yield c


@pytest.fixture
async def other_org_client(db, other_org_admin, other_org) -> AsyncGenerator[AsyncClient, None]:
    async for c in _client(db, _token(other_org_admin, other_org, Role.ADMIN)):
        yield c


@pytest.fixture
async def worker_client_no_csrf(db, worker_user, test_org) -> AsyncGenerator[AsyncClient, None]:
    async for c in _client(db, _token(worker_user, test_org, Role.WORKER), csrf=False):
        yield c
