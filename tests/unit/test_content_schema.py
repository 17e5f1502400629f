import pytest

from app.core.exceptions import ValidationError
from app.models.shared.enums import RequestType
from app.schemas.request.content_schema import validate_content, validate_linkage


class TestValidateContent:
    def test_valid_withdrawal(self):
        validate_content(RequestType.SAVINGS_WITHDRAWAL, {"amount": 2500, "reason": "Rent"})

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_content(RequestType.SAVINGS_WITHDRAWAL, {"amount": -5})
        assert "amount" in exc_info.value.detail
        assert exc_info.value.status_code == 422

    def test_missing_field_rejected(self):
        with pytest.raises(ValidationError):
            validate_content(RequestType.LOAN_APPLICATION, {"amount": 1000})

    def test_biodata_update_only_whitelisted_fields(self):
        validate_content(RequestType.BIODATA_UPDATE, {"updates": {"phone_number": "08031234567"}})
        with pytest.raises(ValidationError) as exc_info:
            validate_content(RequestType.BIODATA_UPDATE, {"updates": {"is_verified": True}})
        assert "is_verified" in exc_info.value.detail

    def test_empty_biodata_update_rejected(self):
        with pytest.raises(ValidationError):
            validate_content(RequestType.BIODATA_UPDATE, {"updates": {}})

    def test_account_creation_requires_details(self):
        validate_content(
            RequestType.ACCOUNT_CREATION,
            {"bank_name": "GTB", "account_number": "0123456789", "account_name": "Ada Okafor"},
        )
        with pytest.raises(ValidationError) as exc_info:
            validate_content(RequestType.ACCOUNT_CREATION, {"bank_name": "GTB"})
        assert "account_number" in exc_info.value.detail

    def test_account_update_needs_a_change(self):
        validate_content(RequestType.ACCOUNT_UPDATE, {"account_name": "Ada N. Okafor"})
        with pytest.raises(ValidationError) as exc_info:
            validate_content(RequestType.ACCOUNT_UPDATE, {"note": "nothing to change"})
        assert "bank_name" in exc_info.value.detail

    def test_free_form_types_accept_anything(self):
        validate_content(RequestType.SYSTEM_ADJUSTMENT, {"anything": [1, 2, 3]})

    def test_non_object_rejected(self):
        with pytest.raises(ValidationError):
            validate_content(RequestType.SYSTEM_ADJUSTMENT, ["not", "an", "object"])


class TestValidateLinkage:
    def test_required_ids_present(self):
        validate_linkage(RequestType.SAVINGS_WITHDRAWAL, {"biodata_id": 1, "savings_id": 2})

    def test_missing_ids_listed(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_linkage(RequestType.SAVINGS_WITHDRAWAL, {"biodata_id": 1, "savings_id": None})
        assert "savings_id" in exc_info.value.detail

    def test_types_without_linkage(self):
        validate_linkage(RequestType.BULK_UPLOAD, {})
