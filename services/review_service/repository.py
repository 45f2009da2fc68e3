from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Review


class ReviewRepository:

    @staticmethod
    async def create_review(db: AsyncSession, review: Review) -> Review:
        db.add(review)
        await db.commit()
        await db.refresh(review)
        return review

    @staticmethod
    async def find(db: AsyncSession, reviewer_id: int, listing_id: int) -> Optional[Review]:
        result = await db.execute(
            select(Review).where(Review.reviewer_id == reviewer_id, Review.listing_id == listing_id)
        )
        return result.scalars().first()

    @staticmethod
    async def list_for_listing(db: AsyncSession, listing_id: int):
        result = await db.execute(
            select(Review).where(Review.listing_id == listing_id).order_by(Review.created_at.desc(), Review.id.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def list_for_seller(db: AsyncSession, seller_id: int, limit: int = 5):
        result = await db.execute(
            select(Review)
            .where(Review.reviewee_id == seller_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .limit(limit)
        )
        return result.scalars().all()

    @staticmethod
    async def rating_stats(db: AsyncSession, seller_id: int):
        result = await db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(Review.reviewee_id == seller_id)
        )
        return result.one()

    @staticmethod
    async def rating_stats_for_sellers(db: AsyncSession, seller_ids) -> dict:
        """{seller_id: (average, count)} for sellers with at least one review."""
        if not seller_ids:
            return {}
        result = await db.execute(
            select(Review.reviewee_id, func.avg(Review.rating), func.count(Review.id))
            .where(Review.reviewee_id.in_(seller_ids))
            .group_by(Review.reviewee_id)
        )
        return {seller_id: (average, count) for seller_id, average, count in result.all()}
