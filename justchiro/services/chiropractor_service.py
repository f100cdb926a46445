"""
Chiropractor Service

Listing reads and writes. Public reads only ever see active listings; the
admin reads see everything. Writes flush but never commit: the Mutation
Pipeline owns the transaction.
"""
import logging
from typing import Optional, Dict, Any, List, Tuple

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from justchiro.core.exceptions import NotFound
from justchiro.core.sanitizer import sanitize
from justchiro.core.utils import like_pattern
from justchiro.models.chiropractor import Chiropractor

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name", "state", "address", "phone", "email",
    "website", "specialty", "description", "is_featured",
)


class ChiropractorService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Public reads
    # ------------------------------------------------------------------

    async def list_public(
        self,
        page: int = 1,
        limit: int = 50,
        state: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Chiropractor], int]:
        """Active listings, featured first then by name."""
        filters = [Chiropractor.is_active.is_(True)]
        if state:
            filters.append(Chiropractor.state == sanitize(state))
        if search:
            pattern = like_pattern(sanitize(search))
            filters.append(or_(
                Chiropractor.name.ilike(pattern, escape="\\"),
                Chiropractor.specialty.ilike(pattern, escape="\\"),
                Chiropractor.address.ilike(pattern, escape="\\"),
            ))

        total = await self.db.scalar(
            select(func.count(Chiropractor.id)).where(*filters)
        )
        result = await self.db.execute(
            select(Chiropractor)
            .where(*filters)
            .order_by(Chiropractor.is_featured.desc(), Chiropractor.name.asc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return list(result.scalars().all()), total or 0

    async def list_by_state(self, state: str) -> List[Chiropractor]:
        result = await self.db.execute(
            select(Chiropractor)
            .where(Chiropractor.state == sanitize(state), Chiropractor.is_active.is_(True))
            .order_by(Chiropractor.is_featured.desc(), Chiropractor.name.asc())
        )
        return list(result.scalars().all())

    async def states_with_counts(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(Chiropractor.state, func.count(Chiropractor.id).label("count"))
            .where(Chiropractor.is_active.is_(True))
            .group_by(Chiropractor.state)
            .order_by(Chiropractor.state.asc())
        )
        return [{"state": state, "count": count} for state, count in result.all()]

    async def get_public(self, listing_id: int) -> Chiropractor:
        result = await self.db.execute(
            select(Chiropractor).where(
                Chiropractor.id == listing_id,
                Chiropractor.is_active.is_(True),
            )
        )
        listing = result.scalar_one_or_none()
        if listing is None:
            raise NotFound("Chiropractor not found")
        return listing

    async def related(self, listing_id: int, limit: int = 6) -> List[Chiropractor]:
        """Other active listings in the same state, featured first."""
        listing = await self.get_public(listing_id)
        result = await self.db.execute(
            select(Chiropractor)
            .where(
                Chiropractor.state == listing.state,
                Chiropractor.id != listing.id,
                Chiropractor.is_active.is_(True),
            )
            .order_by(Chiropractor.is_featured.desc(), func.random())
            .limit(limit)
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Admin reads
    # ------------------------------------------------------------------

    async def get(self, listing_id: int) -> Chiropractor:
        """Any listing by id, active or not."""
        listing = await self.db.get(Chiropractor, listing_id)
        if listing is None:
            raise NotFound("Chiropractor not found")
        return listing

    async def list_all(self, page: int = 1, limit: int = 50) -> Tuple[List[Chiropractor], int]:
        total = await self.db.scalar(select(func.count(Chiropractor.id)))
        result = await self.db.execute(
            select(Chiropractor)
            .order_by(Chiropractor.created_at.desc(), Chiropractor.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return list(result.scalars().all()), total or 0

    async def export_all(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(select(Chiropractor).order_by(Chiropractor.name))
        return [listing.to_dict() for listing in result.scalars().all()]

    async def count_active(self) -> int:
        return await self.db.scalar(
            select(func.count(Chiropractor.id)).where(Chiropractor.is_active.is_(True))
        ) or 0

    async def top_states(self, limit: int = 5) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(Chiropractor.state, func.count(Chiropractor.id).label("count"))
            .where(Chiropractor.is_active.is_(True))
            .group_by(Chiropractor.state)
            .order_by(func.count(Chiropractor.id).desc(), Chiropractor.state.asc())
            .limit(limit)
        )
        return [{"state": state, "count": count} for state, count in result.all()]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    def _apply(listing: Chiropractor, data: Dict[str, Any]) -> None:
        # Full replacement: optional fields left out of the payload are cleared
        listing.name = data["name"]
        listing.state = data["state"]
        listing.address = data["address"]
        listing.phone = data["phone"]
        listing.email = data["email"]
        listing.website = data.get("website") or None
        listing.specialty = data.get("specialty") or None
        listing.description = data.get("description") or None
        listing.is_featured = bool(data.get("is_featured", False))

    async def create(self, data: Dict[str, Any]) -> Chiropractor:
        listing = Chiropractor(is_active=True)
        self._apply(listing, data)
        self.db.add(listing)
        await self.db.flush()
        logger.info(f"Created chiropractor {listing.id}")
        return listing

    async def update(self, listing_id: int, data: Dict[str, Any]) -> Tuple[Dict[str, Any], Chiropractor]:
        listing = await self.get(listing_id)
        before = listing.to_dict()
        self._apply(listing, data)
        await self.db.flush()
        return before, listing

    async def set_active(self, listing_id: int, active: bool) -> Tuple[Dict[str, Any], Chiropractor]:
        """Soft delete (active=False) or restore (active=True)."""
        listing = await self.get(listing_id)
        before = listing.to_dict()
        listing.is_active = active
        await self.db.flush()
        return before, listing

    async def delete_permanently(self, listing_id: int) -> Dict[str, Any]:
        listing = await self.get(listing_id)
        before = listing.to_dict()
        await self.db.delete(listing)
        await self.db.flush()
        logger.info(f"Permanently deleted chiropractor {listing_id}")
        return before
