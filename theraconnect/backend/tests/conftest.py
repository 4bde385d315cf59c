import itertools
import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from datetime import datetime, timezone

import pytest
from fastapi import Depends, FastAPI, HTTPException
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from app.api import deps
from app.api.routes import admin, auth, bookings, demo, misc, parents, therapists
from app.api.routes import notifications as notification_routes
from app.core import dates
from app.db.session import Base, get_db
from app.db import models

# Friday, 1 November 2024
NOW = datetime(2024, 11, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture()
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def clock(monkeypatch):
    current = {"now": NOW}
    monkeypatch.setattr(dates, "utc_now", lambda: current["now"])

    def set_now(value: datetime) -> datetime:
        current["now"] = value
        return value

    return set_now


_emails = itertools.count(1)


def _user(session, role: models.UserRole) -> models.User:
    user = models.User(
        email=f"{role.value}{next(_emails)}@example.com",
        password_hash="not-a-real-hash",
        role=role,
    )
    session.add(user)
    session.flush()
    return user


@pytest.fixture()
def make_parent(db_session):
    def factory(name: str = "Anna Smith") -> models.Parent:
        user = _user(db_session, models.UserRole.parent)
        parent = models.Parent(user_id=user.id, name=name)
        db_session.add(parent)
        db_session.commit()
        return parent

    return factory


@pytest.fixture()
def make_child(db_session):
    def factory(parent: models.Parent, name: str = "Mia") -> models.Child:
        child = models.Child(parent_id=parent.id, name=name, age=6)
        db_session.add(child)
        db_session.commit()
        return child

    return factory


@pytest.fixture()
def make_therapist(db_session):
    def factory(
        times: tuple[str, ...] = ("09:00", "10:00"),
        status: models.TherapistStatus = models.TherapistStatus.active,
        name: str = "Dr. Rao",
    ) -> models.Therapist:
        user = _user(db_session, models.UserRole.therapist)
        therapist = models.Therapist(
            user_id=user.id,
            name=name,
            specialization="Speech therapy",
            status=status,
            active_times=[
                models.TherapistActiveTime(start_time=dates.parse_slot_time(value))
                for value in times
            ],
        )
        db_session.add(therapist)
        db_session.commit()
        return therapist

    return factory


@pytest.fixture()
def make_admin(db_session):
    def factory() -> models.User:
        user = _user(db_session, models.UserRole.admin)
        db_session.commit()
        return user

    return factory


@pytest.fixture()
def parent(make_parent):
    return make_parent()


@pytest.fixture()
def child(make_child, parent):
    return make_child(parent)


@pytest.fixture()
def therapist(make_therapist):
    return make_therapist()


def notifications_of(session, type_: models.NotificationType) -> list[models.Notification]:
    return session.query(models.Notification).filter_by(type=type_).all()


@pytest.fixture()
def notifications(db_session):
    def lookup(type_: models.NotificationType) -> list[models.Notification]:
        return notifications_of(db_session, type_)

    return lookup



@pytest.fixture()
def api_client(session_factory):
    current = {"user_id": None}

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    def override_get_current_user(db: Session = Depends(get_db)):
        user = db.get(models.User, current["user_id"]) if current["user_id"] else None
        if user is None:
            raise HTTPException(status_code=401, detail="Could not validate credentials")
        return user

    def login_as(user: models.User) -> None:
        current["user_id"] = user.id

    test_app = FastAPI()
    for module in (auth, parents, therapists, bookings, admin, demo, notification_routes, misc):
        test_app.include_router(module.router, prefix="/api/v1")
    test_app.dependency_overrides[get_db] = override_get_db
    test_app.dependency_overrides[deps.get_current_user] = override_get_current_user

    with TestClient(test_app) as client:
        yield client, login_as

    test_app.dependency_overrides.clear()
