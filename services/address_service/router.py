from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security.dependencies import get_current_user

from .schemas import AddressResponse, AddressUpsert
from .service import AddressService

router = APIRouter(tags=["Shipping addresses"])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "address", "status": "running"}


@router.get("/", response_model=list[AddressResponse])
async def list_addresses(
    user_id: int = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    return await AddressService.list_addresses(db, user_id)


@router.post("/", response_model=AddressResponse, status_code=status.HTTP_201_CREATED)
async def create_address(
    payload: AddressUpsert,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AddressService.upsert_address(db, user_id, payload, set_default=payload.set_default)


@router.put("/{address_id}", response_model=AddressResponse)
async def update_address(
    address_id: int,
    payload: AddressUpsert,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AddressService.upsert_address(
        db, user_id, payload, set_default=payload.set_default, address_id=address_id
    )


@router.post("/{address_id}/default", response_model=AddressResponse)
async def set_default(
    address_id: int,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AddressService.set_default(db, user_id, address_id)


@router.delete("/{address_id}")
async def delete_address(
    address_id: int,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    promoted = await AddressService.delete_address(db, user_id, address_id)
    return {"deleted": address_id, "promoted_default_id": promoted}
