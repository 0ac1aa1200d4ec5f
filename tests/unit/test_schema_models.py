"""Unit tests for the account document model and its safe view."""

from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId
from pydantic import ValidationError

from schemas.models.account import AccountDoc, SafeView, VendorProfile, to_safe_view

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def _account(**overrides) -> AccountDoc:
    base = dict(
        role="customer",
        first_name="Jane",
        last_name="Doe",
        email="jane@example.com",
        password_hash="$argon2id$fake",
        dob=datetime(1990, 1, 1, tzinfo=timezone.utc),
    )
    base.update(overrides)
    return AccountDoc(**base)


class TestAccountDoc:
    def test_to_mongo_uses_camel_case_keys(self):
        doc = _account(username="jane_d").to_mongo()
        assert doc["firstName"] == "Jane"
        assert doc["passwordHash"] == "$argon2id$fake"
        assert doc["isVerified"] is False
        assert doc["resetCodeAttempts"] == 0
        assert "_id" not in doc

    def test_to_mongo_keeps_object_id(self):
        oid = ObjectId()
        doc = _account(_id=oid).to_mongo()
        assert doc["_id"] == oid

    def test_from_mongo_round_trip(self):
        oid = ObjectId()
        raw = {**_account().to_mongo(), "_id": oid, "legacyField": "ignored"}
        account = AccountDoc.from_mongo(raw)
        assert account.id == oid
        assert account.first_name == "Jane"

    def test_from_mongo_none(self):
        assert AccountDoc.from_mongo(None) is None

    def test_touch_keeps_created_at(self):
        account = _account()
        account.touch(NOW)
        account.touch(NOW + timedelta(hours=1))
        assert account.created_at == NOW
        assert account.updated_at == NOW + timedelta(hours=1)
        doc = account.to_mongo()
        assert doc["createdAt"] == NOW
        assert doc["updatedAt"] == NOW + timedelta(hours=1)

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError):
            _account(role="admin")

    def test_negative_attempts_rejected(self):
        account = _account()
        with pytest.raises(ValidationError):
            account.reset_code_attempts = -1

    def test_vendor_categories_stored_as_primary_categories(self):
        vendor = VendorProfile(
            business_name="Clay & Co",
            phone="0412345678",
            description="Ceramics",
            categories=["Home", "Jewellery"],
        )
        doc = _account(role="vendor", vendor=vendor, dob=None).to_mongo()
        assert doc["vendor"]["primaryCategories"] == ["Home", "Jewellery"]
        assert doc["vendor"]["businessName"] == "Clay & Co"

        back = AccountDoc.from_mongo({**doc, "_id": ObjectId()})
        assert back.vendor.categories == ["Home", "Jewellery"]

    @pytest.mark.parametrize(
        "stored, expected",
        [
            ({"primaryCategory": " Home "}, ["Home"]),
            ({"primaryCategory": "Home", "primaryCategories": []}, ["Home"]),
            ({"primaryCategory": "Home", "primaryCategories": ["Art"]}, ["Art"]),
            ({"primaryCategory": "   "}, []),
        ],
    )
    def test_legacy_primary_category_folded(self, stored, expected):
        vendor = VendorProfile.model_validate(
            {
                "businessName": "Clay & Co",
                "phone": "0412345678",
                "description": "Ceramics",
                **stored,
            }
        )
        assert vendor.categories == expected

    def test_reads_older_window_key_names(self):
        expires = datetime(2030, 1, 1, tzinfo=timezone.utc)
        raw = _account().to_mongo()
        for key in ("verifyCodeExpiresAt", "lastVerifyEmailSentAt", "resetCodeExpiresAt"):
            del raw[key]
        raw = {
            **raw,
            "_id": ObjectId(),
            "verifyCodeHash": "$argon2id$v",
            "verifyCodeExpires": expires,
            "lastVerifyEmailAt": NOW,
            "resetCodeHash": "$argon2id$r",
            "resetCodeExpires": expires,
        }
        account = AccountDoc.from_mongo(raw)
        assert account.verify_code_expires_at == expires
        assert account.last_verify_email_sent_at == NOW
        assert account.reset_code_expires_at == expires
        doc = account.to_mongo()
        assert doc["verifyCodeExpiresAt"] == expires
        assert "verifyCodeExpires" not in doc

    def test_top_level_phone_kept(self):
        account = AccountDoc.from_mongo(
            {**_account().to_mongo(), "_id": ObjectId(), "phone": "0298765432"}
        )
        assert account.to_mongo()["phone"] == "0298765432"


class TestCodeWindows:
    def test_verify_window_lifecycle(self):
        account = _account()
        assert not account.has_verify_window
        assert account.verify_window_expired(NOW)

        account.open_verify_window("hash", NOW + timedelta(minutes=10), NOW)
        assert account.has_verify_window
        assert account.last_verify_email_sent_at == NOW
        assert not account.verify_window_expired(NOW + timedelta(minutes=9))
        assert account.verify_window_expired(NOW + timedelta(minutes=11))

        account.clear_verify_window()
        assert account.verify_code_hash is None
        assert account.verify_code_expires_at is None
        # Throttle marker survives the clear
        assert account.last_verify_email_sent_at == NOW

    def test_naive_expiry_treated_as_utc(self):
        account = _account()
        account.open_verify_window("hash", datetime(2025, 3, 1, 12, 10), NOW)
        assert not account.verify_window_expired(NOW)

    def test_reset_window_resets_attempts(self):
        account = _account()
        account.open_reset_window("hash", NOW + timedelta(minutes=10), NOW)
        account.reset_code_attempts = 3
        account.open_reset_window("hash2", NOW + timedelta(minutes=10), NOW)
        assert account.reset_code_attempts == 0

    def test_clear_reset_window(self):
        account = _account()
        account.open_reset_window("hash", NOW + timedelta(minutes=10), NOW)
        account.reset_code_attempts = 5
        account.clear_reset_window()
        assert not account.has_reset_window
        assert account.reset_code_attempts == 0
        assert account.last_reset_request_at == NOW


class TestSafeView:
    def test_projection_excludes_secrets(self):
        account = _account(_id=ObjectId())
        account.open_verify_window("hash", NOW, NOW)
        view = to_safe_view(account)
        dumped = view.model_dump(by_alias=True)
        assert set(dumped) == {
            "id",
            "role",
            "firstName",
            "lastName",
            "email",
            "username",
            "isVerified",
        }
        assert dumped["id"] == str(account.id)

    def test_populate_by_alias(self):
        view = SafeView.model_validate(
            {
                "id": "abc",
                "role": "vendor",
                "firstName": "Sam",
                "lastName": "Potter",
                "email": "sam@example.com",
                "isVerified": False,
            }
        )
        assert view.first_name == "Sam"
        assert view.username is None
