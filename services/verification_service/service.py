"""
Seller verification: a farm submits its business details and a licence
document, an administrator approves or rejects it, and only approved
sellers may publish listings.

Editing an approved verification keeps the approval unless one of the
reviewed fields (farm name, owner name, address, licence) changes, in
which case the request goes back to pending for re-review.
"""
import math
from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.auth_service.repository import UserRepository
from services.review_service.repository import ReviewRepository
from shared.clients.geocoder import Geocoder
from shared.config import settings
from shared.errors import NotFound, PermissionDenied, ValidationError

from .models import STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED, SellerVerification
from .repository import VerificationRepository
from .schemas import VerificationSubmit

logger = structlog.get_logger(__name__)

CORE_FIELDS = ("farm_name", "owner_name", "address", "business_license_path")
EARTH_RADIUS_KM = 6371.0


def _rating(average, count: int) -> Optional[float]:
    return round(float(average), 1) if count else None


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance (haversine)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class VerificationService:

    @staticmethod
    async def get_status(db: AsyncSession, user_id: int) -> str:
        verification = await VerificationRepository.get(db, user_id)
        return verification.status if verification else "none"

    @staticmethod
    async def is_approved_seller(db: AsyncSession, user_id: int) -> bool:
        return await VerificationService.get_status(db, user_id) == STATUS_APPROVED

    @staticmethod
    async def get_own(db: AsyncSession, user_id: int) -> SellerVerification:
        verification = await VerificationRepository.get(db, user_id)
        if not verification:
            raise NotFound("No seller verification on file")
        return verification

    @staticmethod
    async def submit(
        db: AsyncSession, user_id: int, data: VerificationSubmit, geocoder: Geocoder
    ) -> SellerVerification:
        fields = {
            "farm_name": _clean(data.farm_name),
            "owner_name": _clean(data.owner_name),
            "phone": _clean(data.phone),
            "address": _clean(data.address),
            "location_note": _clean(data.location_note),
            "description": _clean(data.description),
        }
        if not all(fields[name] for name in ("farm_name", "owner_name", "phone", "address")):
            raise ValidationError("Farm name, owner name, phone and address are required.")

        current = await VerificationRepository.get(db, user_id)
        license_path = _clean(data.business_license_path) or (
            current.business_license_path if current else None
        )
        if not license_path:
            raise ValidationError("Upload a business licence document.")
        fields["business_license_path"] = license_path

        if current is None:
            current = SellerVerification(user_id=user_id)
            needs_review = True
        elif current.status == STATUS_APPROVED:
            needs_review = any(getattr(current, name) != fields[name] for name in CORE_FIELDS)
        else:
            needs_review = True

        address_changed = current.address != fields["address"]
        for name, value in fields.items():
            setattr(current, name, value)

        if address_changed or current.latitude is None:
            await VerificationService._locate(current, geocoder)

        if needs_review:
            current.status = STATUS_PENDING
            current.requested_at = datetime.now(timezone.utc)
            current.reviewed_at = None
            current.reviewed_by = None
            current.rejection_reason = None

        saved = await VerificationRepository.save(db, current)
        logger.info("verification_submitted", user_id=user_id, status=saved.status)
        return saved

    @staticmethod
    async def _locate(verification: SellerVerification, geocoder: Geocoder) -> None:
        try:
            coords = await geocoder.geocode(verification.address)
        except NotFound:
            logger.info("farm_address_not_geocoded", user_id=verification.user_id)
            verification.latitude = None
            verification.longitude = None
            return
        verification.latitude = coords.lat
        verification.longitude = coords.lng

    # --- Admin ---

    @staticmethod
    async def _require_admin(db: AsyncSession, user_id: int) -> None:
        user = await UserRepository.get_by_id(db, user_id)
        if not user or not user.is_admin:
            raise PermissionDenied("Administrator access required")

    @staticmethod
    async def list_requests(db: AsyncSession, admin_id: int, status: Optional[str] = None):
        await VerificationService._require_admin(db, admin_id)
        return await VerificationRepository.list_all(db, status)

    @staticmethod
    async def approve(db: AsyncSession, admin_id: int, user_id: int) -> SellerVerification:
        await VerificationService._require_admin(db, admin_id)
        verification = await VerificationService.get_own(db, user_id)
        verification.status = STATUS_APPROVED
        verification.reviewed_at = datetime.now(timezone.utc)
        verification.reviewed_by = admin_id
        verification.rejection_reason = None
        saved = await VerificationRepository.save(db, verification)
        logger.info("verification_approved", user_id=user_id, admin_id=admin_id)
        return saved

    @staticmethod
    async def reject(
        db: AsyncSession, admin_id: int, user_id: int, reason: str
    ) -> SellerVerification:
        await VerificationService._require_admin(db, admin_id)
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Enter a rejection reason.")
        verification = await VerificationService.get_own(db, user_id)
        verification.status = STATUS_REJECTED
        verification.reviewed_at = datetime.now(timezone.utc)
        verification.reviewed_by = admin_id
        verification.rejection_reason = reason
        saved = await VerificationRepository.save(db, verification)
        logger.info("verification_rejected", user_id=user_id, admin_id=admin_id)
        return saved

    # --- Farm directory ---

    @staticmethod
    async def list_farms(
        db: AsyncSession,
        near_lat: Optional[float] = None,
        near_lng: Optional[float] = None,
        radius_km: Optional[float] = None,
    ):
        """Approved farms with coordinates and their review rating.

        Given a point, only farms within `radius_km` of it are returned,
        nearest first.
        """
        farms = await VerificationRepository.list_approved_with_coordinates(db)
        stats = await ReviewRepository.rating_stats_for_sellers(db, [f.user_id for f in farms])

        entries = []
        for farm in farms:
            average, count = stats.get(farm.user_id, (None, 0))
            entries.append(
                {
                    "id": farm.user_id,
                    "farm_name": farm.farm_name,
                    "address": farm.address,
                    "lat": farm.latitude,
                    "lng": farm.longitude,
                    "rating_avg": _rating(average, count),
                    "rating_count": count,
                    "distance_km": None,
                }
            )

        if near_lat is None or near_lng is None:
            return entries
        radius = settings.NEARBY_RADIUS_KM if radius_km is None else radius_km
        for entry in entries:
            entry["distance_km"] = round(
                distance_km(near_lat, near_lng, entry["lat"], entry["lng"]), 2
            )
        nearby = [e for e in entries if e["distance_km"] <= radius]
        return sorted(nearby, key=lambda e: e["distance_km"])

    @staticmethod
    async def get_farm_profile(db: AsyncSession, seller_id: int, recent: int = 5) -> dict:
        verification = await VerificationRepository.get(db, seller_id)
        if verification is None or verification.status != STATUS_APPROVED:
            raise NotFound("Farm not found")
        average, count = await ReviewRepository.rating_stats(db, seller_id)
        return {
            "id": verification.user_id,
            "farm_name": verification.farm_name,
            "owner_name": verification.owner_name,
            "address": verification.address,
            "location_note": verification.location_note,
            "description": verification.description,
            "lat": verification.latitude,
            "lng": verification.longitude,
            "rating_avg": _rating(average, count),
            "rating_count": count,
            "recent_reviews": await ReviewRepository.list_for_seller(db, seller_id, limit=recent),
        }
