"""
Chiropractor directory routes

Public reads see active listings only. Create/update/delete are admin
writes through the Mutation Pipeline; delete is a soft delete.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from justchiro.api.deps import Pagination, envelope, get_pipeline
from justchiro.core.database import get_db
from justchiro.core.utils import paginate
from justchiro.models.audit_log import AuditAction
from justchiro.schemas.chiropractor import chiropractor_rules
from justchiro.services.chiropractor_service import ChiropractorService
from justchiro.services.pipeline import MutationOutcome, MutationPipeline

router = APIRouter()

ENTITY = "chiropractor"


@router.get("")
async def list_chiropractors(
    pagination: Pagination = Depends(),
    state: Optional[str] = Query(None, max_length=100),
    search: Optional[str] = Query(None, max_length=255),
    db: AsyncSession = Depends(get_db),
):
    """Active listings, featured first, optionally filtered by state and search text."""
    page, limit = pagination.resolve(default_limit=50)
    listings, total = await ChiropractorService(db).list_public(page, limit, state=state, search=search)
    return envelope({
        "chiropractors": [listing.to_summary() for listing in listings],
        "pagination": paginate(page, limit, total),
    })


@router.get("/states")
async def list_states(db: AsyncSession = Depends(get_db)):
    return envelope({"states": await ChiropractorService(db).states_with_counts()})


@router.get("/state/{state}")
async def list_by_state(state: str, db: AsyncSession = Depends(get_db)):
    listings = await ChiropractorService(db).list_by_state(state)
    return envelope({"chiropractors": [listing.to_summary() for listing in listings]})


@router.get("/{listing_id}")
async def get_chiropractor(
    listing_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
):
    listing = await ChiropractorService(db).get_public(listing_id)
    data = listing.to_dict()
    data.pop("is_active", None)
    return envelope({"chiropractor": data})


@router.get("/{listing_id}/related")
async def get_related(
    listing_id: int = Path(..., ge=1),
    limit: int = Query(6, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    related = await ChiropractorService(db).related(listing_id, limit=limit)
    return envelope({
        "related": [
            {
                "id": listing.id,
                "name": listing.name,
                "state": listing.state,
                "address": listing.address,
                "phone": listing.phone,
                "specialty": listing.specialty,
            }
            for listing in related
        ],
    })


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_chiropractor(request: Request, pipeline: MutationPipeline = Depends(get_pipeline)):
    async def mutate(data, identity):
        listing = await ChiropractorService(pipeline.db).create(data)
        return MutationOutcome(entity_id=listing.id, new_snapshot=listing.to_dict(), result=listing)

    outcome = await pipeline.run(
        request,
        action=AuditAction.CREATE,
        entity_type=ENTITY,
        rules=chiropractor_rules,
        mutate=mutate,
    )
    return envelope(
        {"chiropractor": outcome.result.to_dict()},
        message="Chiropractor created successfully",
    )


@router.put("/{listing_id}")
async def update_chiropractor(
    request: Request,
    listing_id: int = Path(..., ge=1),
    pipeline: MutationPipeline = Depends(get_pipeline),
):
    async def mutate(data, identity):
        before, listing = await ChiropractorService(pipeline.db).update(listing_id, data)
        return MutationOutcome(
            entity_id=listing.id,
            old_snapshot=before,
            new_snapshot=listing.to_dict(),
            result=listing,
        )

    outcome = await pipeline.run(
        request,
        action=AuditAction.UPDATE,
        entity_type=ENTITY,
        rules=chiropractor_rules,
        mutate=mutate,
    )
    return envelope(
        {"chiropractor": outcome.result.to_dict()},
        message="Chiropractor updated successfully",
    )


@router.delete("/{listing_id}")
async def delete_chiropractor(
    request: Request,
    listing_id: int = Path(..., ge=1),
    pipeline: MutationPipeline = Depends(get_pipeline),
):
    """Soft delete: the listing is hidden from public reads but kept."""

    async def mutate(data, identity):
        before, listing = await ChiropractorService(pipeline.db).set_active(listing_id, False)
        return MutationOutcome(
            entity_id=listing.id,
            old_snapshot=before,
            new_snapshot=listing.to_dict(),
        )

    await pipeline.run(request, action=AuditAction.DELETE, entity_type=ENTITY, mutate=mutate)
    return envelope(message="Chiropractor deleted successfully")
