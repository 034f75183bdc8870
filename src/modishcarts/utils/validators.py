import re
import uuid
from typing import Optional

from email_validator import validate_email, EmailNotValidError


class ValidationUtils:
    """
    Validation and normalisation helpers shared by schemas and services.

    Email validation uses email-validator without DNS checks so that
    validation stays offline and deterministic.
    """

    PATTERNS = {
        'sku': re.compile(r'^[A-Z0-9][A-Z0-9\-_]{1,63}$'),
        'slug': re.compile(r'^[a-z0-9]+(?:-[a-z0-9]+)*$'),
        'phone': re.compile(r'^\+?[0-9 ()\-.]{7,20}$'),
    }

    MIN_PASSWORD_LENGTH = 8
    MAX_PASSWORD_LENGTH = 128

    @classmethod
    def validate_email(cls, email: str) -> bool:
        try:
            validate_email(email, check_deliverability=False)
            return True
        except EmailNotValidError:
            return False

    @classmethod
    def normalize_email(cls, email: str) -> str:
        """Normalize email address for consistent storage"""
        try:
            validated = validate_email(email.strip(), check_deliverability=False)
            return validated.normalized.lower()
        except EmailNotValidError:
            raise ValueError(f"Invalid email address: {email}")

    @classmethod
    def validate_sku(cls, sku: str) -> bool:
        return cls.PATTERNS['sku'].match(sku.strip().upper()) is not None

    @classmethod
    def normalize_sku(cls, sku: str) -> str:
        """Normalize SKU for consistent storage"""
        normalized = sku.strip().upper()
        if not cls.validate_sku(normalized):
            raise ValueError(f"Invalid SKU format: {sku}")
        return normalized

    @classmethod
    def validate_slug(cls, slug: str) -> bool:
        return cls.PATTERNS['slug'].match(slug) is not None

    @classmethod
    def slugify(cls, text: str) -> str:
        slug = re.sub(r'[^a-z0-9]+', '-', text.lower()).strip('-')
        return slug or uuid.uuid4().hex[:8]

    @classmethod
    def validate_phone(cls, phone: str) -> bool:
        return cls.PATTERNS['phone'].match(phone.strip()) is not None

    @classmethod
    def validate_uuid(cls, uuid_string: Optional[str]) -> bool:
        """Validate UUID format"""
        try:
            uuid.UUID(str(uuid_string))
            return True
        except (ValueError, TypeError):
            return False

    @classmethod
    def sanitize_text(cls, text: str, max_length: Optional[int] = None) -> str:
        """Strip whitespace and control characters, enforce a length limit."""
        sanitized = text.strip()
        # Remove control characters except newlines and tabs
        sanitized = re.sub(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]', '', sanitized)
        if max_length:
            sanitized = sanitized[:max_length]
        return sanitized
