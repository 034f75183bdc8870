import logging
from typing import Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from modishcarts.core.config import SecurityConfig
from modishcarts.core.exceptions import ConflictError, UnauthorizedError, ValidationError
from modishcarts.core.security import (
    REFRESH_TOKEN, IssuedToken, create_access_token, create_refresh_token,
    decode_token, generate_reset_token, hash_password, hash_reset_token,
    is_token_revoked, verify_password,
)
from modishcarts.models import PasswordResetToken, User
from modishcarts.utils.date_utils import DateUtils
from modishcarts.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_REFRESH_TOKEN = "Invalid refresh token"
INVALID_RESET_TOKEN = "Invalid or expired reset token"


class AuthService:
    """
    Registration, login, token refresh, password reset and profile updates.
    """

    def __init__(self, session: Session, settings: SecurityConfig):
        self.session = session
        self.settings = settings

    def register(self, data: dict) -> User:
        email = ValidationUtils.normalize_email(data["email"])
        logger.info(f"Registering user {email}")

        if self._find_by_email(email) is not None:
            logger.warning(f"Registration rejected, email already in use: {email}")
            raise ConflictError("User with this email already exists", conflict_field="email")

        user = User(
            email=email,
            password_hash=hash_password(data["password"], self.settings.password_hash_rounds),
            first_name=data["first_name"].strip(),
            last_name=data["last_name"].strip(),
            phone=data.get("phone"),
        )
        self.session.add(user)
        try:
            self.session.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            raise ConflictError("User with this email already exists", conflict_field="email")

        logger.info(f"Registered user {user.id}")
        return user

    def login(self, email: str, password: str) -> Tuple[User, IssuedToken, IssuedToken]:
        user = self._find_by_email(ValidationUtils.normalize_email(email))
        if user is None or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for {email}")
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if not user.is_active:
            logger.warning(f"Login attempt for disabled account {user.id}")
            raise UnauthorizedError("Your account is disabled")

        logger.info(f"User {user.id} logged in")
        access, refresh = self.issue_tokens(user)
        return user, access, refresh

    def refresh(self, refresh_token: str) -> Tuple[User, IssuedToken, IssuedToken]:
        claims = decode_token(
            refresh_token, self.settings, expected_type=REFRESH_TOKEN,
            error_message=INVALID_REFRESH_TOKEN,
        )
        user = self.session.get(User, claims.user_id)
        if user is None or not user.is_active or is_token_revoked(claims, user):
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        access, refresh = self.issue_tokens(user)
        return user, access, refresh

    def issue_tokens(self, user: User) -> Tuple[IssuedToken, IssuedToken]:
        return (
            create_access_token(user, self.settings),
            create_refresh_token(user, self.settings),
        )

    def request_password_reset(self, email: str) -> Optional[str]:
        """
        Create a reset token for an active account.

        Returns the raw token, or None when no active account matches. The
        caller must not reveal which of the two happened.
        """
        user = self._find_by_email(ValidationUtils.normalize_email(email))
        if user is None or not user.is_active:
            logger.info(f"Password reset requested for unknown or disabled email {email}")
            return None

        now = DateUtils.now_utc()
        # Only the newest token stays usable
        self.session.execute(
            update(PasswordResetToken)
            .where(PasswordResetToken.user_id == user.id, PasswordResetToken.used_at.is_(None))
            .values(used_at=now)
        )

        raw, digest = generate_reset_token()
        self.session.add(
            PasswordResetToken(
                user_id=user.id,
                token_hash=digest,
                expires_at=DateUtils.create_expiry_time(
                    minutes=self.settings.reset_token_expiration_minutes
                ),
            )
        )
        self.session.flush()
        logger.info(f"Password reset token issued for user {user.id}")
        return raw

    def reset_password(self, raw_token: str, new_password: str) -> User:
        stmt = select(PasswordResetToken).where(
            PasswordResetToken.token_hash == hash_reset_token(raw_token)
        )
        record = self.session.scalars(stmt).first()
        if record is None or record.used_at is not None or DateUtils.is_expired(record.expires_at):
            raise ValidationError(INVALID_RESET_TOKEN)

        user = record.user
        if not user.is_active:
            raise ValidationError(INVALID_RESET_TOKEN)

        now = DateUtils.now_utc()
        user.password_hash = hash_password(new_password, self.settings.password_hash_rounds)
        user.password_changed_at = now
        user.token_version = (user.token_version or 0) + 1
        record.used_at = now
        self.session.flush()

        logger.info(f"Password reset completed for user {user.id}")
        return user

    def update_profile(self, user: User, data: dict) -> User:
        if "first_name" in data:
            user.first_name = data["first_name"].strip()
        if "last_name" in data:
            user.last_name = data["last_name"].strip()
        if "phone" in data:
            user.phone = data["phone"]
        self.session.flush()
        logger.info(f"Updated profile for user {user.id}")
        return user

    def _find_by_email(self, email: str) -> Optional[User]:
        return self.session.scalars(select(User).where(User.email == email)).first()
