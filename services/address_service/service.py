"""
Shipping address book.

Every operation that touches the default flag clears and sets it inside a
single transaction. The partial unique index on (owner_id) WHERE
is_default turns a concurrent second default into an IntegrityError,
reported as Conflict, so the book never holds two defaults.
"""
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.errors import Conflict, NotFound, PersistenceError, ValidationError

from .models import ShippingAddress
from .repository import AddressRepository
from .schemas import AddressFields

logger = structlog.get_logger(__name__)

REQUIRED_FIELDS = ("receiver_name", "receiver_phone", "road_address")


def clean_fields(fields: AddressFields) -> dict:
    data = {}
    for name, value in fields.model_dump(include=set(AddressFields.model_fields)).items():
        value = value.strip() if isinstance(value, str) else value
        data[name] = value or None
    missing = [name for name in REQUIRED_FIELDS if not data[name]]
    if missing:
        raise ValidationError("Receiver name, phone and road address are required.")
    return data


class AddressService:

    @staticmethod
    async def list_addresses(db: AsyncSession, owner_id: int):
        return await AddressRepository.list_for_owner(db, owner_id)

    @staticmethod
    async def get_default(db: AsyncSession, owner_id: int) -> Optional[ShippingAddress]:
        return await AddressRepository.get_default(db, owner_id)

    @staticmethod
    async def get_owned(db: AsyncSession, owner_id: int, address_id: int) -> ShippingAddress:
        address = await AddressRepository.get(db, address_id)
        if address is None or address.owner_id != owner_id:
            raise NotFound("Address not found")
        return address

    @staticmethod
    async def _commit(db: AsyncSession) -> None:
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise Conflict("The address book changed concurrently. Please try again.") from e
        except SQLAlchemyError as e:
            await db.rollback()
            raise PersistenceError(str(e)) from e

    @staticmethod
    async def upsert_address(
        db: AsyncSession,
        owner_id: int,
        fields: AddressFields,
        set_default: bool = False,
        address_id: Optional[int] = None,
    ) -> ShippingAddress:
        data = clean_fields(fields)

        if address_id is not None:
            address = await AddressService.get_owned(db, owner_id, address_id)
        else:
            count = await AddressRepository.count_for_owner(db, owner_id)
            if count >= settings.MAX_ADDRESSES_PER_USER:
                raise ValidationError(
                    f"You can save up to {settings.MAX_ADDRESSES_PER_USER} addresses."
                )
            # The first address of a book is its default.
            set_default = set_default or count == 0
            address = None

        if set_default:
            await AddressRepository.clear_default(db, owner_id)

        if address is None:
            address = ShippingAddress(owner_id=owner_id, is_default=set_default, **data)
            db.add(address)
        else:
            for name, value in data.items():
                setattr(address, name, value)
            if set_default:
                address.is_default = True

        await AddressService._commit(db)
        await db.refresh(address)
        logger.info(
            "address_saved", owner_id=owner_id, address_id=address.id, is_default=address.is_default
        )
        return address

    @staticmethod
    async def save_for_checkout(
        db: AsyncSession, owner_id: int, fields: AddressFields, set_default: bool = False
    ) -> ShippingAddress:
        """Save a checkout address, reusing an identical saved one."""
        data = clean_fields(fields)
        existing = await AddressRepository.find_matching(db, owner_id, data)
        if existing is not None:
            if set_default and not existing.is_default:
                return await AddressService.set_default(db, owner_id, existing.id)
            return existing
        return await AddressService.upsert_address(db, owner_id, fields, set_default=set_default)

    @staticmethod
    async def set_default(db: AsyncSession, owner_id: int, address_id: int) -> ShippingAddress:
        address = await AddressService.get_owned(db, owner_id, address_id)
        if address.is_default:
            return address
        await AddressRepository.clear_default(db, owner_id)
        address.is_default = True
        await AddressService._commit(db)
        await db.refresh(address)
        logger.info("default_address_changed", owner_id=owner_id, address_id=address_id)
        return address

    @staticmethod
    async def delete_address(db: AsyncSession, owner_id: int, address_id: int) -> Optional[int]:
        """Delete an address. Returns the id of the promoted default, if any."""
        address = await AddressService.get_owned(db, owner_id, address_id)
        was_default = address.is_default
        await db.delete(address)
        await db.flush()

        promoted = None
        if was_default:
            promoted = await AddressRepository.newest_for_owner(db, owner_id)
            if promoted is not None:
                promoted.is_default = True

        await AddressService._commit(db)
        logger.info(
            "address_deleted",
            owner_id=owner_id,
            address_id=address_id,
            promoted_id=promoted.id if promoted else None,
        )
        return promoted.id if promoted else None
