from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import STATUS_APPROVED, SellerVerification


class VerificationRepository:

    @staticmethod
    async def get(db: AsyncSession, user_id: int) -> Optional[SellerVerification]:
        result = await db.execute(
            select(SellerVerification).where(SellerVerification.user_id == user_id)
        )
        return result.scalars().first()

    @staticmethod
    async def list_all(db: AsyncSession, status: Optional[str] = None):
        stmt = select(SellerVerification).order_by(SellerVerification.requested_at.desc())
        if status:
            stmt = stmt.where(SellerVerification.status == status)
        result = await db.execute(stmt)
        return result.scalars().all()

    @staticmethod
    async def save(db: AsyncSession, verification: SellerVerification) -> SellerVerification:
        db.add(verification)
        await db.commit()
        await db.refresh(verification)
        return verification

    @staticmethod
    async def list_approved_with_coordinates(db: AsyncSession):
        """Approved farms that can be placed on a map."""
        result = await db.execute(
            select(SellerVerification)
            .where(
                SellerVerification.status == STATUS_APPROVED,
                SellerVerification.latitude.is_not(None),
                SellerVerification.longitude.is_not(None),
            )
            .order_by(SellerVerification.farm_name, SellerVerification.user_id)
        )
        return result.scalars().all()
