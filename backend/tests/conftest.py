"""
Shared fixtures: in-memory database, API client, accounts and a fake gateway
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["CASHFREE_SECRET_KEY"] = "test-cashfree-secret"

from decimal import Decimal
import json

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hostel.config.permissions import AccessLevel, Permission
from hostel.config.roles import Role
from hostel.database import Base, get_db
from hostel.main import app
from hostel.models import Admin, Course, Branch, Room, Student
from hostel.services.auth_service import create_account_tokens
from hostel.services.payment_gateway import CashfreeService, get_payment_gateway
from hostel.utils.security import hash_password

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeCashfree:
    """In-memory stand-in for the Cashfree PG HTTP API"""

    def __init__(self):
        self.orders = {}
        self.payments = {}
        self.calls = []
        self.fail = False
        self.pay_before_terminate = False

    def set_payments(self, order_id, *attempts):
        self.payments[order_id] = list(attempts)

    def set_order_status(self, order_id, order_status):
        self.orders[order_id]["order_status"] = order_status

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((request.method, request.url.path))
        if self.fail:
            return httpx.Response(503, json={"message": "unavailable"})

        parts = request.url.path.split("/orders", 1)[1].strip("/").split("/")
        order_id = parts[0] if parts[0] else None

        if request.method == "POST" and order_id is None:
            body = json.loads(request.content)
            order = {
                "order_id": body["order_id"],
                "order_amount": body["order_amount"],
                "order_status": "ACTIVE",
                "payment_session_id": f"session_{body['order_id']}",
            }
            self.orders[body["order_id"]] = order
            return httpx.Response(200, json=order)

        if order_id not in self.orders:
            return httpx.Response(404, json={"message": "order not found"})

        if request.method == "PATCH":
            if self.pay_before_terminate:
                self.orders[order_id]["order_status"] = "PAID"
                self.payments[order_id] = [{"payment_status": "SUCCESS", "cf_payment_id": 77}]
            if self.orders[order_id]["order_status"] == "PAID":
                return httpx.Response(409, json={"message": "order already paid"})
            self.orders[order_id]["order_status"] = "TERMINATED"
            return httpx.Response(200, json=self.orders[order_id])
        if len(parts) > 1 and parts[1] == "payments":
            return httpx.Response(200, json=self.payments.get(order_id, []))
        return httpx.Response(200, json=self.orders[order_id])


@pytest.fixture
def cashfree():
    return FakeCashfree()


@pytest.fixture
def gateway(cashfree):
    return CashfreeService(transport=httpx.MockTransport(cashfree.handler))


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db, gateway):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_admin(db, username, role=Role.SUB_ADMIN, permissions=None, levels=None, **kwargs):
    permissions = [Permission(p).value for p in (permissions or [])]
    levels = {Permission(k).value: AccessLevel(v).value for k, v in (levels or {}).items()}
    admin = Admin(
        username=username,
        password_hash=hash_password("password123"),
        full_name=username.title(),
        role=role,
        permissions=permissions,
        permission_access_levels=levels,
        **kwargs,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def make_student(db, roll_number, room_number="101", gender="Male", category="UG", **kwargs):
    kwargs.setdefault("requires_password_change", False)
    student = Student(
        name=f"Student {roll_number}",
        roll_number=roll_number,
        password_hash=hash_password("password123"),
        gender=gender,
        category=category,
        room_number=room_number,
        phone="9876543210",
        parent_phone="9123456780",
        **kwargs,
    )
    db.add(student)
    db.commit()
    db.refresh(student)
    return student


def auth_headers(account):
    access_token, _ = create_account_tokens(account)
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def super_admin(db):
    return make_admin(db, "root", role=Role.SUPER_ADMIN)


@pytest.fixture
def room(db):
    room = Room(room_number="101", gender="Male", category="UG", bed_count=3, meter_reading=100, electricity_rate=Decimal("8.00"))
    db.add(room)
    db.commit()
    db.refresh(room)
    return room


@pytest.fixture
def course(db):
    course = Course(name="Bachelor of Technology", code="BTECH")
    course.branches.append(Branch(name="Computer Science", code="CSE"))
    course.branches.append(Branch(name="Mechanical", code="ME"))
    db.add(course)
    db.commit()
    db.refresh(course)
    return course
