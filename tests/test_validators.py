import pytest

from modishcarts.utils.validators import ValidationUtils


class TestValidationUtils:
    @pytest.mark.parametrize("email", ["test@modishcarts.com", "First.Last+tag@modishcarts.com"])
    def test_valid_emails(self, email):
        assert ValidationUtils.validate_email(email)

    @pytest.mark.parametrize("email", ["", "plainaddress", "missing-at.com", "a@b"])
    def test_invalid_emails(self, email):
        assert not ValidationUtils.validate_email(email)

    def test_normalize_email_lowercases(self):
        assert ValidationUtils.normalize_email("  Test@ModishCarts.COM ") == "test@modishcarts.com"

    def test_sku_normalization(self):
        assert ValidationUtils.normalize_sku(" wbh-001 ") == "WBH-001"
        with pytest.raises(ValueError):
            ValidationUtils.normalize_sku("?")

    def test_slugify(self):
        assert ValidationUtils.slugify("Home & Garden: 2-in-1 Set") == "home-garden-2-in-1-set"
        assert ValidationUtils.validate_slug(ValidationUtils.slugify("Classic Cotton T-Shirt"))

    def test_sanitize_text_strips_control_characters(self):
        assert ValidationUtils.sanitize_text("  hi\x00 there\n ", max_length=6) == "hi the"
