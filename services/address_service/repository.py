from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ShippingAddress


class AddressRepository:
    """Data access only. Callers own commit/rollback so that a clear-then-set
    default change lands in one transaction."""

    @staticmethod
    async def get(db: AsyncSession, address_id: int) -> Optional[ShippingAddress]:
        result = await db.execute(select(ShippingAddress).where(ShippingAddress.id == address_id))
        return result.scalars().first()

    @staticmethod
    async def list_for_owner(db: AsyncSession, owner_id: int):
        result = await db.execute(
            select(ShippingAddress)
            .where(ShippingAddress.owner_id == owner_id)
            .order_by(ShippingAddress.is_default.desc(), ShippingAddress.created_at.desc(), ShippingAddress.id.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def count_for_owner(db: AsyncSession, owner_id: int) -> int:
        return await db.scalar(
            select(func.count(ShippingAddress.id)).where(ShippingAddress.owner_id == owner_id)
        ) or 0

    @staticmethod
    async def get_default(db: AsyncSession, owner_id: int) -> Optional[ShippingAddress]:
        result = await db.execute(
            select(ShippingAddress).where(
                ShippingAddress.owner_id == owner_id, ShippingAddress.is_default.is_(True)
            )
        )
        return result.scalars().first()

    @staticmethod
    async def find_matching(
        db: AsyncSession, owner_id: int, fields: dict
    ) -> Optional[ShippingAddress]:
        stmt = select(ShippingAddress).where(ShippingAddress.owner_id == owner_id)
        for name, value in fields.items():
            column = getattr(ShippingAddress, name)
            stmt = stmt.where(column.is_(None) if value is None else column == value)
        result = await db.execute(stmt.order_by(ShippingAddress.id))
        return result.scalars().first()

    @staticmethod
    async def newest_for_owner(db: AsyncSession, owner_id: int) -> Optional[ShippingAddress]:
        result = await db.execute(
            select(ShippingAddress)
            .where(ShippingAddress.owner_id == owner_id)
            .order_by(ShippingAddress.created_at.desc(), ShippingAddress.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    @staticmethod
    async def clear_default(db: AsyncSession, owner_id: int) -> None:
        await db.execute(
            update(ShippingAddress)
            .where(ShippingAddress.owner_id == owner_id, ShippingAddress.is_default.is_(True))
            .values(is_default=False)
            .execution_options(synchronize_session="fetch")
        )
        await db.flush()
