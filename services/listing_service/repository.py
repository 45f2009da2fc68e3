from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Listing


class ListingRepository:

    @staticmethod
    async def create_listing(db: AsyncSession, listing: Listing) -> Listing:
        db.add(listing)
        await db.commit()
        await db.refresh(listing)
        return listing

    @staticmethod
    async def get_listing(db: AsyncSession, listing_id: int) -> Optional[Listing]:
        result = await db.execute(select(Listing).where(Listing.id == listing_id))
        return result.scalars().first()

    @staticmethod
    async def get_listings_by_ids(db: AsyncSession, listing_ids) -> dict:
        if not listing_ids:
            return {}
        result = await db.execute(select(Listing).where(Listing.id.in_(set(listing_ids))))
        return {listing.id: listing for listing in result.scalars().all()}

    @staticmethod
    async def search_listings(
        db: AsyncSession,
        category: Optional[str] = None,
        status: Optional[str] = None,
        owner_id: Optional[int] = None,
        query: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ):
        stmt = select(Listing)
        if category:
            stmt = stmt.where(Listing.category == category)
        if status:
            stmt = stmt.where(Listing.status == status)
        if owner_id is not None:
            stmt = stmt.where(Listing.owner_id == owner_id)
        if query:
            words = [w for w in query.lower().split() if w]
            for word in words:
                pattern = f"%{word}%"
                stmt = stmt.where(
                    or_(Listing.title.ilike(pattern), Listing.description.ilike(pattern))
                )
        stmt = stmt.order_by(Listing.created_at.desc(), Listing.id.desc()).limit(limit).offset(offset)
        result = await db.execute(stmt)
        return result.scalars().all()

    @staticmethod
    async def update_listing(db: AsyncSession, listing: Listing) -> Listing:
        db.add(listing)
        await db.commit()
        await db.refresh(listing)
        return listing

    @staticmethod
    async def delete_listing(db: AsyncSession, listing: Listing) -> None:
        await db.delete(listing)
        await db.commit()
