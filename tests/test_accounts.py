"""Tests for account helpers and settings."""

from pathlib import Path

import pytest

from food_ordering import accounts, models, schemas
from food_ordering.config import Settings
from food_ordering.errors import NotFound, ValidationError
from food_ordering.models import Role


class TestDeliveryStatus:
    def test_toggle_without_value(self, db_sess, seed):
        rider = seed.delivery_user(is_available=False)

        user = accounts.update_delivery_status(db_sess, rider.id, schemas.DeliveryStatusUpdate())
        assert user.is_available is True

        user = accounts.update_delivery_status(db_sess, rider.id, schemas.DeliveryStatusUpdate())
        assert user.is_available is False

    def test_explicit_value_and_location(self, db_sess, seed):
        rider = seed.delivery_user(is_available=True)

        user = accounts.update_delivery_status(
            db_sess, rider.id, schemas.DeliveryStatusUpdate(is_available=True, lat=12.9, lng=77.6)
        )

        assert user.is_available is True
        assert (user.lat, user.lng) == (12.9, 77.6)

    def test_location_report_keeps_availability(self, db_sess, seed):
        rider = seed.delivery_user(is_available=False)

        user = accounts.update_delivery_status(
            db_sess, rider.id, schemas.DeliveryStatusUpdate(lat=12.9, lng=77.6)
        )

        assert user.is_available is False
        assert (user.lat, user.lng) == (12.9, 77.6)

    def test_admin_verification_separate_from_phone(self, db_sess, seed):
        rider = seed.delivery_user(verified=False)

        user = accounts.set_delivery_user_verified(db_sess, rider.id, True)

        assert user.verified is True
        assert user.phone_verified is False

    def test_unknown_user(self, db_sess):
        with pytest.raises(NotFound):
            accounts.set_delivery_user_verified(db_sess, 404, True)


class TestPhoneVerification:
    def test_delivery_sets_phone_verified(self, db_sess, seed, identity, app, sms):
        rider = seed.delivery_user()
        otp = app.state.otp
        accounts.request_otp(db_sess, otp, Role.DELIVERY, rider.id)

        user, token = accounts.verify_phone(
            db_sess, identity, otp, Role.DELIVERY, rider.id, sms.last_code(rider.phone)
        )

        assert user.phone_verified is True
        assert identity.verify_token(token).verified is True

    def test_unknown_code(self, db_sess, seed, identity, app):
        customer = seed.customer()
        with pytest.raises(ValidationError, match="OTP not found or expired"):
            accounts.verify_phone(db_sess, identity, app.state.otp, Role.CUSTOMER, customer.id, "123456")


class TestEnsureAdmin:
    def test_seeded_once(self, db_sess, identity):
        first = accounts.ensure_admin(db_sess, identity, "Root@Example.com", "pw123456")
        second = accounts.ensure_admin(db_sess, identity, "root@example.com", "other-pw")

        assert first.id == second.id
        assert db_sess.query(models.Admin).filter(models.Admin.email == "root@example.com").count() == 1

    def test_skipped_without_credentials(self, db_sess, identity):
        assert accounts.ensure_admin(db_sess, identity, "", "") is None


class TestSettings:
    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///elsewhere.db")
        monkeypatch.setenv("OTP_TTL_SECONDS", "0")
        monkeypatch.setenv("UPLOAD_DIR", str(tmp_path))
        monkeypatch.setenv("UPLOAD_BACKOFF_SECONDS", "0.5")

        settings = Settings.from_env(env_file=str(tmp_path / "missing.env"))

        assert settings.database_url == "sqlite:///elsewhere.db"
        assert settings.otp_ttl_seconds == 0
        assert settings.upload_backoff_seconds == 0.5
        assert settings.failure_log_path == tmp_path / "failed_uploads.log"

    def test_explicit_failure_log(self):
        settings = Settings(upload_failure_log=Path("/var/log/uploads.log"))
        assert settings.failure_log_path == Path("/var/log/uploads.log")


class TestVendorProfile:
    def test_empty_food_types_clear_list(self, db_sess, seed):
        vendor = seed.vendor()

        updated = accounts.update_vendor_profile(
            db_sess, vendor.id, schemas.VendorProfileUpdate(food_type=[])
        )

        assert updated.food_type == []
        assert updated.name == vendor.name

    def test_absent_fields_untouched(self, db_sess, seed):
        vendor = seed.vendor()

        updated = accounts.update_vendor_profile(
            db_sess, vendor.id, schemas.VendorProfileUpdate(address="1 MG Road")
        )

        assert updated.address == "1 MG Road"
        assert updated.food_type == ["veg"]
