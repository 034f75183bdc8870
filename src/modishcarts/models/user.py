from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from modishcarts.db import Base, new_id
from modishcarts.utils.date_utils import DateUtils


class User(Base):
    """
    Represents a registered customer or administrator.

    email is stored lower-cased so the unique constraint is effectively
    case-insensitive. token_version is embedded in every JWT; bumping it
    on a password reset invalidates all tokens issued before.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(32), nullable=True)
    is_admin = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    password_changed_at = Column(DateTime(timezone=True), nullable=True)
    token_version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=DateUtils.now_utc)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=DateUtils.now_utc, onupdate=DateUtils.now_utc
    )

    addresses = relationship(
        "Address", back_populates="user", cascade="all, delete-orphan"
    )
    cart_items = relationship(
        "CartItem", back_populates="user", cascade="all, delete-orphan"
    )
    orders = relationship("Order", back_populates="user")

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"


class PasswordResetToken(Base):
    """
    A single-use password reset token.

    Only the sha256 digest of the token is stored; the raw value is handed
    to the user once.
    """

    __tablename__ = "password_reset_tokens"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash = Column(String(64), nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=DateUtils.now_utc)

    user = relationship("User")

    def __repr__(self) -> str:
        return f"<PasswordResetToken id={self.id} user_id={self.user_id}>"
