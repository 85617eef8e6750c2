"""Pytest fixtures."""

import uuid
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from civic.core.deps import get_mailer
from civic.core.identity import Actor
from civic.core.security import create_access_token
from civic.db.base import Base
from civic.db.session import get_db
from civic.main import app
from civic.models import Category, ChatThread, Message, Notification, Office, Report, User  # noqa: F401 - register for create_all
from civic.models.enums import Role
from civic.services.chat_service import ChatService
from civic.services.mail_service import LoggingMailer
from civic.services.message_service import MessageService
from civic.services.notification_service import NotificationDispatcher
from civic.services.reference_data import ReferenceData
from civic.services.report_store import ReportStore
from civic.services.workflow import WorkflowEngine

TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def _unique():
    return uuid.uuid4().hex[:8]


def build_services(db, mailer=None, clock=None, maintainer_chat_partner="staff"):
    """Wire the core components on one session, the way the API dependencies do."""
    ref = ReferenceData(db)
    dispatcher = NotificationDispatcher(db, mailer)
    chats = ChatService(db, ref)
    message_kwargs = {"clock": clock} if clock else {}
    return SimpleNamespace(
        ref=ref,
        dispatcher=dispatcher,
        chats=chats,
        messages=MessageService(db, ref, dispatcher, **message_kwargs),
        workflow=WorkflowEngine(
            store=ReportStore(db),
            ref=ref,
            chats=chats,
            dispatcher=dispatcher,
            maintainer_chat_partner=maintainer_chat_partner,
        ),
    )


@pytest.fixture(scope="session")
def setup_db():
    """Create tables once for test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(setup_db):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mailer():
    return LoggingMailer()


@pytest.fixture
def services(db, mailer):
    return build_services(db, mailer)


@pytest.fixture
def wire(db, mailer):
    """Build the services on the test session with custom options."""

    def _wire(session=None, **kwargs):
        return build_services(session or db, mailer, **kwargs)

    return _wire


@pytest.fixture
def session_factory(setup_db):
    return TestingSessionLocal


@pytest.fixture
def client(setup_db, mailer):
    """Test client with overridden DB and mail port."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Create a committed user with the given role."""

    def _make(role: Role, office_id=None, email_notifications=False, is_active=True) -> User:
        uid = _unique()
        name = role.value.lower()
        user = User(
            email=f"{name}_{uid}@test.com",
            username=f"{name}_{uid}",
            first_name=name.split("_")[0].title(),
            last_name=uid,
            role=role.value,
            office_id=office_id,
            is_active=is_active,
            email_notifications_enabled=email_notifications,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_category(db):
    """Create an office and a category handled by it."""

    def _make(office=None) -> Category:
        uid = _unique()
        if office is None:
            office = Office(name=f"Office {uid}")
            db.add(office)
            db.flush()
        category = Category(name=f"Category {uid}", office_id=office.id)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category

    return _make


@pytest.fixture
def cast(make_user, make_category):
    """The people around one report: citizen, PRO, office staff, maintainer."""
    category = make_category()
    citizen = make_user(Role.CITIZEN)
    pro = make_user(Role.PUBLIC_RELATIONS_OFFICER)
    staff = make_user(Role.TECHNICAL_STAFF_MEMBER, office_id=category.office_id)
    maintainer = make_user(Role.EXTERNAL_MAINTAINER)
    return SimpleNamespace(
        category=category,
        citizen=citizen,
        pro=pro,
        staff=staff,
        maintainer=maintainer,
        as_citizen=Actor.of(citizen),
        as_pro=Actor.of(pro),
        as_staff=Actor.of(staff),
        as_maintainer=Actor.of(maintainer),
    )


@pytest.fixture
def auth_header():
    def _header(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _header
