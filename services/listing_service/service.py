import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.chat_service.notifier import ChatNotifier
from services.chat_service.repository import ChatRepository
from services.verification_service.service import VerificationService
from shared.errors import NotFound, PermissionDenied, ValidationError

from .models import STATUS_COMPLETED, STATUS_ON_SALE, Listing, ListingImage
from .repository import ListingRepository
from .schemas import ListingCreate, ListingUpdate

logger = structlog.get_logger(__name__)

REQUIRED_TEXT_FIELDS = ("title", "category")


def _check_amounts(price, stock_quantity):
    if price is not None and price < 0:
        raise ValidationError("Price cannot be negative.")
    if stock_quantity is not None and stock_quantity < 0:
        raise ValidationError("Stock cannot be negative.")


class ListingService:

    @staticmethod
    async def create_listing(db: AsyncSession, owner_id: int, data: ListingCreate) -> Listing:
        if not await VerificationService.is_approved_seller(db, owner_id):
            raise PermissionDenied("Seller verification must be approved before listing products.")

        title = data.title.strip()
        category = data.category.strip()
        if not title:
            raise ValidationError("Enter a product name.")
        if not category:
            raise ValidationError("Choose a category.")
        if data.price is None:
            raise ValidationError("Enter a price.")
        if data.stock_quantity is None:
            raise ValidationError("Enter the total stock quantity.")
        _check_amounts(data.price, data.stock_quantity)

        listing = Listing(
            owner_id=owner_id,
            title=title,
            description=data.description,
            category=category,
            unit=data.unit,
            region_name=data.region_name,
            price=data.price,
            stock_quantity=data.stock_quantity,
            status=STATUS_ON_SALE,
            images=[
                ListingImage(url=url, sort_order=index)
                for index, url in enumerate(data.image_urls)
            ],
        )
        listing = await ListingRepository.create_listing(db, listing)
        logger.info("listing_created", listing_id=listing.id, owner_id=owner_id)
        return listing

    @staticmethod
    async def get_listing(db: AsyncSession, listing_id: int) -> Listing:
        listing = await ListingRepository.get_listing(db, listing_id)
        if not listing:
            raise NotFound("Listing not found")
        return listing

    @staticmethod
    async def list_listings(db: AsyncSession, **filters):
        return await ListingRepository.search_listings(db, **filters)

    @staticmethod
    async def _get_owned(db: AsyncSession, owner_id: int, listing_id: int) -> Listing:
        listing = await ListingService.get_listing(db, listing_id)
        if listing.owner_id != owner_id:
            raise PermissionDenied("Only the seller can change this listing.")
        return listing

    @staticmethod
    async def update_listing(
        db: AsyncSession, owner_id: int, listing_id: int, data: ListingUpdate
    ) -> Listing:
        listing = await ListingService._get_owned(db, owner_id, listing_id)
        changes = data.model_dump(exclude_unset=True)

        for name in REQUIRED_TEXT_FIELDS:
            if name in changes:
                value = (changes[name] or "").strip()
                if not value:
                    raise ValidationError(f"{name.capitalize()} cannot be empty.")
                changes[name] = value
        _check_amounts(changes.get("price"), changes.get("stock_quantity"))

        for name, value in changes.items():
            setattr(listing, name, value)
        listing = await ListingRepository.update_listing(db, listing)
        logger.info("listing_updated", listing_id=listing.id, fields=sorted(changes))
        return listing

    @staticmethod
    async def delete_listing(db: AsyncSession, owner_id: int, listing_id: int) -> None:
        listing = await ListingService._get_owned(db, owner_id, listing_id)
        await ListingRepository.delete_listing(db, listing)
        logger.info("listing_deleted", listing_id=listing_id)

    @staticmethod
    async def change_status(
        db: AsyncSession, owner_id: int, listing_id: int, status: str, sold_room_id=None
    ) -> Listing:
        """Seller-controlled status change.

        Completing a sale may attribute it to one of the listing's buyer
        conversations; leaving `completed` always drops that attribution.
        """
        listing = await ListingService._get_owned(db, owner_id, listing_id)

        room = None
        if status == STATUS_COMPLETED:
            if sold_room_id is not None:
                room = await ChatRepository.get_room(db, sold_room_id)
                if room is None or room.listing_id != listing.id:
                    raise ValidationError("Choose a buyer conversation for this listing.")
            newly_bound = sold_room_id is not None and sold_room_id != listing.sold_room_id
            listing.sold_room_id = sold_room_id
        else:
            newly_bound = False
            listing.sold_room_id = None
        listing.status = status

        listing = await ListingRepository.update_listing(db, listing)
        logger.info(
            "listing_status_changed",
            listing_id=listing.id,
            status=status,
            sold_room_id=listing.sold_room_id,
        )

        if newly_bound and not await ChatNotifier.post_sold_notice(db, room, owner_id, listing):
            await db.refresh(listing)
        return listing
