"""Pytest fixtures for food-ordering tests."""

import pytest
from argon2 import PasswordHasher
from fastapi.testclient import TestClient

from food_ordering import models
from food_ordering.accounts import principal_for
from food_ordering.config import Settings
from food_ordering.errors import UpstreamFailure
from food_ordering.main import create_app

TEST_SECRET = "test-secret-long-enough-for-hs256-signing-keys"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-pass"


class FakeStorage:
    """Object storage double; names in ``fail_names`` always fail."""

    def __init__(self, fail_names=()):
        self.fail_names = set(fail_names)
        self.calls = []

    def upload(self, path, original_name):
        self.calls.append(original_name)
        if original_name in self.fail_names:
            raise UpstreamFailure("object-storage", f"rejected {original_name}")
        return f"https://images.example.com/{original_name}"


class RecordingSender:
    def __init__(self):
        self.sent = []

    def send(self, phone, message):
        self.sent.append((phone, message))

    def last_code(self, phone):
        for to, message in reversed(self.sent):
            if to == phone:
                return message.rsplit(" ", 1)[-1]
        return None


class Seeder:
    """Inserts rows directly, bypassing the API."""

    def __init__(self, db_sess, identity):
        self.db_sess = db_sess
        self.identity = identity
        self._seq = 0

    def _next(self):
        self._seq += 1
        return self._seq

    def _save(self, obj):
        self.db_sess.add(obj)
        self.db_sess.commit()
        self.db_sess.refresh(obj)
        return obj

    def customer(self, pincode="12345", password="secret1", phone="9876543210"):
        n = self._next()
        return self._save(
            models.Customer(
                email=f"customer{n}@example.com",
                password=self.identity.hash_password(password),
                phone=phone,
                first_name="Asha",
                last_name="Rao",
                address="12 Lake Road",
                pincode=pincode,
            )
        )

    def vendor(self, pincode="12345", rating=0.0, service_available=True, password="secret1"):
        n = self._next()
        return self._save(
            models.Vendor(
                name=f"Vendor {n}",
                owner_name="Owner",
                food_type=["veg"],
                pincode=pincode,
                phone="9000000000",
                email=f"vendor{n}@example.com",
                password=self.identity.hash_password(password),
                service_available=service_available,
                rating=rating,
            )
        )

    def food(self, vendor, name="Paneer Tikka", price=120.0, ready_time=20):
        return self._save(
            models.Food(
                vendor_id=vendor.id,
                name=name,
                description="House special",
                category="main",
                food_type="veg",
                ready_time=ready_time,
                price=price,
            )
        )

    def delivery_user(self, pincode="12345", verified=True, is_available=True, password="secret1"):
        n = self._next()
        return self._save(
            models.DeliveryUser(
                email=f"rider{n}@example.com",
                password=self.identity.hash_password(password),
                phone="9111111111",
                pincode=pincode,
                verified=verified,
                is_available=is_available,
            )
        )

    def offer(self, vendor=None, offer_amount=20.0, is_active=True, pincode="12345", offer_type="VENDOR"):
        offer = models.Offer(
            offer_type=offer_type,
            title="Flat off",
            offer_amount=offer_amount,
            promocode=f"SAVE{self._next()}",
            pincode=pincode,
            is_active=is_active,
        )
        if vendor is not None:
            offer.vendors = [vendor]
        return self._save(offer)

    def transaction(self, customer, amount=100.0, status=models.TransactionStatus.OPEN):
        return self._save(
            models.Transaction(
                customer_id=customer.id,
                payable_amount=amount,
                status=status.value,
                payment_mode="COD",
                payment_response="Payment is cash on delivery",
            )
        )


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        app_secret=TEST_SECRET,
        upload_dir=tmp_path / "uploads",
        upload_backoff_seconds=0,
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
    )


@pytest.fixture
def fast_hasher():
    return PasswordHasher(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def sms():
    return RecordingSender()


@pytest.fixture
def app(settings, storage, sms, fast_hasher):
    app = create_app(settings, image_storage=storage, sms_sender=sms, password_hasher=fast_hasher)
    yield app
    app.state.engine.dispose()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def db_sess(app):
    s = app.state.session_factory()
    yield s
    s.close()


@pytest.fixture
def identity(app):
    return app.state.identity


@pytest.fixture
def seed(db_sess, identity):
    return Seeder(db_sess, identity)


@pytest.fixture
def auth_headers(identity):
    """Build a bearer header for an account row."""

    def build(role, account):
        token = identity.issue_token(principal_for(role, account))
        return {"Authorization": f"Bearer {token}"}

    return build
