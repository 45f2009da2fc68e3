import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from services.order_service.repository import OrderRepository
from shared.errors import AlreadyReviewed, PermissionDenied, ValidationError

from .models import Review
from .repository import ReviewRepository

logger = structlog.get_logger(__name__)


class ReviewService:

    @staticmethod
    async def submit_review(
        db: AsyncSession, reviewer_id: int, listing_id: int, rating: int, content: str
    ) -> Review:
        """One review per buyer and listing, after the buyer confirmed receipt."""
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5.")
        text = (content or "").strip()
        if not text:
            raise ValidationError("Write a few words about the product.")

        order = await OrderRepository.find_confirmed(db, reviewer_id, listing_id)
        if order is None:
            raise PermissionDenied("You can review a product after confirming its receipt.")

        if await ReviewRepository.find(db, reviewer_id, listing_id) is not None:
            raise AlreadyReviewed("You have already reviewed this product.")

        review = Review(
            reviewer_id=reviewer_id,
            reviewee_id=order.seller_id,
            listing_id=listing_id,
            order_id=order.id,
            rating=rating,
            content=text,
        )
        try:
            review = await ReviewRepository.create_review(db, review)
        except IntegrityError as e:
            await db.rollback()
            raise AlreadyReviewed("You have already reviewed this product.") from e

        logger.info("review_submitted", review_id=review.id, listing_id=listing_id, rating=rating)
        return review

    @staticmethod
    async def list_for_listing(db: AsyncSession, listing_id: int):
        return await ReviewRepository.list_for_listing(db, listing_id)

    @staticmethod
    async def seller_rating(db: AsyncSession, seller_id: int, recent: int = 5) -> dict:
        average, count = await ReviewRepository.rating_stats(db, seller_id)
        return {
            "seller_id": seller_id,
            "average": round(float(average), 1) if count else None,
            "count": count,
            "recent": await ReviewRepository.list_for_seller(db, seller_id, limit=recent),
        }
