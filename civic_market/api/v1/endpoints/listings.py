from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from civic_market.api.deps import get_listing_manager, get_media_store
from civic_market.schemas.common import Envelope, Pagination
from civic_market.schemas.listing import (
    ListingChanges,
    ListingDraft,
    ListingKind,
    ListingOrderBy,
    ListingOut,
    ListingQuery,
    ListingStatus,
    ListingStatusUpdate,
    OrderDirection,
)
from civic_market.services.auth import Principal, get_principal, require_municipal
from civic_market.services.listings import ListingLifecycleManager
from civic_market.services.media_intake import store_upload
from civic_market.services.storage import LocalMediaStore
from civic_market.services.validation import validate_or_raise

router = APIRouter()

# multipart field carrying the image
MEDIA_FIELD = "imagem"


@router.get("/listings", response_model=Envelope[list[ListingOut]])
async def list_listings(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(None, max_length=100),
    orderBy: ListingOrderBy = Query("created_at"),
    orderDirection: OrderDirection = Query("DESC"),
    kind: ListingKind | None = Query(None),
    status: ListingStatus = Query("approved"),
    manager: ListingLifecycleManager = Depends(get_listing_manager),
) -> Envelope[list[ListingOut]]:
    query = ListingQuery(
        page=page,
        limit=limit,
        search=search,
        orderBy=orderBy,
        orderDirection=orderDirection,
        kind=kind,
        status=status,
    )
    result = await manager.search(query)
    return Envelope[list[ListingOut]](
        message="Listings retrieved",
        data=[ListingOut.model_validate(r) for r in result.items],
        pagination=Pagination(page=result.page, limit=result.limit, total=result.total, totalPages=result.total_pages),
    )


@router.get("/listings/{listing_id}", response_model=Envelope[ListingOut])
async def get_listing(
    listing_id: str,
    manager: ListingLifecycleManager = Depends(get_listing_manager),
) -> Envelope[ListingOut]:
    listing = await manager.get(listing_id)
    return Envelope[ListingOut](message="Listing found", data=ListingOut.model_validate(listing))


@router.post("/listings", response_model=Envelope[ListingOut], status_code=201)
async def create_listing(
    kind: str = Form(...),
    title: str = Form(""),
    description: str = Form(""),
    price: str | None = Form(None),
    event_date: str | None = Form(None),
    event_location: str | None = Form(None),
    imagem: UploadFile | None = File(None),
    principal: Principal = Depends(get_principal),
    manager: ListingLifecycleManager = Depends(get_listing_manager),
    store: LocalMediaStore = Depends(get_media_store),
) -> Envelope[ListingOut]:
    draft = validate_or_raise(ListingDraft, {
        "kind": kind,
        "title": title,
        "description": description,
        "price": price,
        "event_date": event_date,
        "event_location": event_location,
    })

    stored = await store_upload(store, imagem)
    listing = await manager.create(principal, draft, upload_url=stored.url if stored else None)

    return Envelope[ListingOut](
        message=f"Listing created. Status: {listing.status}",
        data=ListingOut.model_validate(listing),
    )


@router.put("/listings/{listing_id}", response_model=Envelope[ListingOut])
async def update_listing(
    listing_id: str,
    title: str | None = Form(None),
    description: str | None = Form(None),
    price: str | None = Form(None),
    event_date: str | None = Form(None),
    event_location: str | None = Form(None),
    remover_imagem: str | None = Form(None),
    imagem: UploadFile | None = File(None),
    principal: Principal = Depends(get_principal),
    manager: ListingLifecycleManager = Depends(get_listing_manager),
    store: LocalMediaStore = Depends(get_media_store),
) -> Envelope[ListingOut]:
    # only fields present in the form become part of the change set
    sent = {
        "title": title,
        "description": description,
        "price": price,
        "event_date": event_date,
        "event_location": event_location,
    }
    changes = validate_or_raise(ListingChanges, {k: v for k, v in sent.items() if v is not None})

    stored = await store_upload(store, imagem)
    listing = await manager.update(
        principal,
        listing_id,
        changes,
        upload_url=stored.url if stored else None,
        remove_media=(remover_imagem or "").strip().lower() == "true",
    )
    return Envelope[ListingOut](message="Listing updated", data=ListingOut.model_validate(listing))


@router.patch("/listings/{listing_id}/status", response_model=Envelope[ListingOut])
async def moderate_listing(
    listing_id: str,
    body: ListingStatusUpdate,
    principal: Principal = Depends(require_municipal),
    manager: ListingLifecycleManager = Depends(get_listing_manager),
) -> Envelope[ListingOut]:
    listing = await manager.moderate(principal, listing_id, body.status)
    return Envelope[ListingOut](
        message=f"Listing status set to {listing.status}",
        data=ListingOut.model_validate(listing),
    )


@router.delete("/listings/{listing_id}", response_model=Envelope[ListingOut])
async def delete_listing(
    listing_id: str,
    principal: Principal = Depends(get_principal),
    manager: ListingLifecycleManager = Depends(get_listing_manager),
) -> Envelope[ListingOut]:
    snapshot = await manager.delete(principal, listing_id)
    return Envelope[ListingOut](message="Listing deleted", data=snapshot)
