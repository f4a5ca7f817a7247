import os

os.environ["DATABASE_URL"] = "sqlite://"


import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import config
from database import get_db
from main import app
from models import AttendanceEvent, Base, Expense, SheetsSale, Target, User, Visit


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def add_rep(db):
    def _add(user_id, is_active=True, role=config.REP_ROLE):
        db.add(User(id=user_id, name=user_id.title(), role=role, is_active=is_active))
        db.commit()
    return _add


@pytest.fixture
def add_attendance(db):
    counter = {"n": 0}

    def _add(user_id, type_, when):
        counter["n"] += 1
        db.add(AttendanceEvent(id=f"att{counter['n']}", user_id=user_id, type=type_, timestamp=when))
        db.commit()
    return _add


@pytest.fixture
def add_visit(db):
    counter = {"n": 0}

    def _add(user_id, when, account_type="dealer"):
        counter["n"] += 1
        visit_id = f"visit{counter['n']}"
        db.add(Visit(
            id=visit_id, user_id=user_id, account_id=f"acc{counter['n']}", account_name="ABC Laminates",
            account_type=account_type, timestamp=when, purpose="follow_up", photos=["photo.jpg"],
        ))
        db.commit()
        return visit_id
    return _add


@pytest.fixture
def add_sale(db):
    counter = {"n": 0}

    def _add(user_id, date, catalog, sheets):
        counter["n"] += 1
        db.add(SheetsSale(id=f"sale{counter['n']}", user_id=user_id, date=date, catalog=catalog, sheets_count=sheets))
        db.commit()
    return _add


@pytest.fixture
def add_expense(db):
    counter = {"n": 0}

    def _add(user_id, date, items):
        counter["n"] += 1
        db.add(Expense(
            id=f"exp{counter['n']}", user_id=user_id, date=date, items=items,
            total_amount=sum(item["amount"] for item in items), status="pending",
        ))
        db.commit()
    return _add


@pytest.fixture
def add_target(db):
    def _add(user_id, month, by_catalog=None, by_account_type=None, auto_renew=True,
             created_by="mgr1", created_by_name="Meera Manager", source_target_id=None):
        target = Target(
            id=f"{user_id}_{month}", user_id=user_id, month=month,
            targets_by_catalog=by_catalog or {}, targets_by_account_type=by_account_type or {},
            auto_renew=auto_renew, created_by=created_by, created_by_name=created_by_name,
            source_target_id=source_target_id,
        )
        db.add(target)
        db.commit()
        return target
    return _add
