import logging
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from modishcarts.core.exceptions import NotFoundError
from modishcarts.models import Address
from modishcarts.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)


class AddressService:
    """
    A user's address book.

    Business rules:
    - at most one default address per (user, type)
    - the first address of a type becomes the default
    - deleting the default, or moving it to another type, promotes the
      most recent remaining address of its old type
    """

    def __init__(self, session: Session):
        self.session = session

    def list_addresses(self, user_id: str) -> List[Address]:
        stmt = (
            select(Address)
            .where(Address.user_id == user_id)
            .order_by(Address.type, Address.is_default.desc(), Address.created_at)
        )
        return list(self.session.scalars(stmt))

    def get_address(self, user_id: str, address_id: str) -> Address:
        address = None
        if ValidationUtils.validate_uuid(address_id):
            stmt = select(Address).where(Address.id == address_id, Address.user_id == user_id)
            address = self.session.scalars(stmt).first()
        if address is None:
            raise NotFoundError("Address")
        return address

    def get_default(self, user_id: str, address_type: str) -> Optional[Address]:
        stmt = select(Address).where(
            Address.user_id == user_id,
            Address.type == address_type,
            Address.is_default.is_(True),
        )
        return self.session.scalars(stmt).first()

    def create_address(self, user_id: str, data: dict) -> Address:
        make_default = data.get("is_default", False) or self.get_default(user_id, data["type"]) is None
        if make_default:
            self._clear_default(user_id, data["type"])

        address = Address(user_id=user_id, **{**data, "is_default": make_default})
        self.session.add(address)
        self.session.flush()
        logger.info(f"Created {address.type} address {address.id} for user {user_id}")
        return address

    def update_address(self, user_id: str, address_id: str, data: dict) -> Address:
        address = self.get_address(user_id, address_id)
        old_type, new_type = address.type, data.get("type", address.type)
        moved = new_type != old_type
        vacated = address.is_default and moved
        if address.is_default and not moved and data.get("is_default") is False:
            # The default is only handed over by marking another address as default
            data = {key: value for key, value in data.items() if key != "is_default"}

        if data.get("is_default") or vacated or (moved and self.get_default(user_id, new_type) is None):
            self._clear_default(user_id, new_type, keep_id=address.id)
            data = {**data, "is_default": True}

        for key, value in data.items():
            setattr(address, key, value)
        self.session.flush()
        if vacated:
            self._promote_replacement(user_id, old_type)
        logger.info(f"Updated address {address.id} for user {user_id}")
        return address

    def delete_address(self, user_id: str, address_id: str) -> None:
        address = self.get_address(user_id, address_id)
        was_default, address_type = address.is_default, address.type
        self.session.delete(address)
        self.session.flush()

        if was_default:
            self._promote_replacement(user_id, address_type)
        logger.info(f"Deleted address {address_id} for user {user_id}")

    def _promote_replacement(self, user_id: str, address_type: str) -> None:
        stmt = (
            select(Address)
            .where(Address.user_id == user_id, Address.type == address_type)
            .order_by(Address.created_at.desc())
        )
        replacement = self.session.scalars(stmt).first()
        if replacement is not None:
            replacement.is_default = True
            self.session.flush()

    def _clear_default(self, user_id: str, address_type: str, keep_id: Optional[str] = None) -> None:
        stmt = (
            update(Address)
            .where(
                Address.user_id == user_id,
                Address.type == address_type,
                Address.is_default.is_(True),
            )
            .values(is_default=False)
        )
        if keep_id:
            stmt = stmt.where(Address.id != keep_id)
        self.session.execute(stmt)
