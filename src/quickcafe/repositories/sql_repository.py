"""SQLAlchemy implementation of DurableStore.

Backs the cafe store, the persisted analysis scores and the durable tier of
the search cache. Runs on any async driver; SQLite through aiosqlite is the
default.
"""

import logging
import uuid

from sqlalchemy import delete, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from quickcafe.config import get_engine
from quickcafe.entities import (
    CafeEntity,
    Coordinates,
    NearbyCafe,
    PriceTier,
    SearchCacheEntry,
)
from quickcafe.geo import bounding_box, haversine_meters

from .models import (
    AmenityScoreRow,
    AnalysisRunRow,
    Base,
    CafeRow,
    SearchCacheRow,
    VibeScoreRow,
)

logger = logging.getLogger(__name__)


def _to_entity(row: CafeRow) -> CafeEntity:
    return CafeEntity(
        id=row.id,
        external_id=row.external_id,
        name=row.name,
        location=Coordinates(row.latitude, row.longitude),
        address=row.address or "",
        price_tier=PriceTier(row.price_tier) if row.price_tier else None,
        reviews=tuple(row.reviews or ()),
        hours=row.hours,
        photos=tuple(row.photos or ()),
        last_fetched=row.last_fetched,
    )


def _apply(row: CafeRow, cafe: CafeEntity) -> None:
    row.name = cafe.name
    row.latitude = cafe.location.lat
    row.longitude = cafe.location.lng
    row.address = cafe.address
    row.price_tier = cafe.price_tier.value if cafe.price_tier else None
    row.reviews = list(cafe.reviews)
    row.hours = cafe.hours
    row.photos = list(cafe.photos)
    row.last_fetched = cafe.last_fetched


class SqlDurableStore:
    """SQLAlchemy implementation of the DurableStore protocol.

    This class satisfies the DurableStore protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(self, engine: AsyncEngine | None = None) -> None:
        """Initialize the store.

        Args:
            engine: Async SQLAlchemy engine. If None, creates one from settings.
        """
        self._engine = engine or get_engine()
        self._sessions = async_sessionmaker(self._engine, expire_on_commit=False)

    @classmethod
    def create(cls, database_url: str | None = None) -> "SqlDurableStore":
        """Factory method to create SqlDurableStore from a database URL."""
        return cls(engine=get_engine(database_url))

    @property
    def url(self) -> str:
        """Database URL with any password masked."""
        return self._engine.url.render_as_string(hide_password=True)

    async def create_schema(self) -> None:
        """Create any missing tables."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self._engine.dispose()

    async def upsert_cafes(self, cafes: list[CafeEntity]) -> list[CafeEntity]:
        """Insert or update cafes keyed by external_id.

        New cafes get a fresh id; existing ones keep theirs. A concurrent
        insert of the same external_id fails the unique constraint once, and
        the second pass then updates the winning row.
        """
        if not cafes:
            return []

        try:
            return await self._upsert(cafes)
        except IntegrityError:
            logger.info("Concurrent cafe insert detected, retrying as update")
            return await self._upsert(cafes)

    async def _upsert(self, cafes: list[CafeEntity]) -> list[CafeEntity]:
        external_ids = list(dict.fromkeys(cafe.external_id for cafe in cafes))
        async with self._sessions() as session, session.begin():
            result = await session.scalars(
                select(CafeRow).where(CafeRow.external_id.in_(external_ids))
            )
            existing = {row.external_id: row for row in result.all()}

            persisted = []
            for cafe in cafes:
                row = existing.get(cafe.external_id)
                if row is None:
                    row = CafeRow(id=uuid.uuid4().hex, external_id=cafe.external_id)
                    session.add(row)
                    existing[cafe.external_id] = row
                _apply(row, cafe)
                persisted.append(cafe.with_id(row.id))

        return persisted

    async def get_cafes(self, cafe_ids: list[str]) -> list[CafeEntity]:
        if not cafe_ids:
            return []

        unique_ids = list(dict.fromkeys(cafe_ids))
        async with self._sessions() as session:
            result = await session.scalars(select(CafeRow).where(CafeRow.id.in_(unique_ids)))
            by_id = {row.id: row for row in result.all()}

        return [_to_entity(by_id[cafe_id]) for cafe_id in cafe_ids if cafe_id in by_id]

    async def find_nearby(
        self,
        center: Coordinates,
        radius_meters: float,
        price_tier: PriceTier | None = None,
        cafe_ids: list[str] | None = None,
    ) -> list[NearbyCafe]:
        """Spatial query: bounding box in SQL, exact haversine distance in numpy."""
        if cafe_ids is not None and not cafe_ids:
            return []

        min_lat, max_lat, min_lng, max_lng = bounding_box(center, radius_meters)
        stmt = select(CafeRow).where(CafeRow.latitude.between(min_lat, max_lat))
        if max_lng - min_lng < 360.0:
            stmt = stmt.where(CafeRow.longitude.between(min_lng, max_lng))
        if price_tier is not None:
            stmt = stmt.where(CafeRow.price_tier == PriceTier(price_tier).value)
        if cafe_ids is not None:
            stmt = stmt.where(CafeRow.id.in_(list(dict.fromkeys(cafe_ids))))

        async with self._sessions() as session:
            rows = (await session.scalars(stmt)).all()
            if not rows:
                return []

            distances = haversine_meters(
                center, [row.latitude for row in rows], [row.longitude for row in rows]
            )
            in_range = [
                (row, float(distance))
                for row, distance in zip(rows, distances)
                if distance <= radius_meters
            ]
            ids = [row.id for row, _ in in_range]
            vibes = await self._load_scores(session, VibeScoreRow, ids)
            amenities = await self._load_scores(session, AmenityScoreRow, ids)

        in_range.sort(key=lambda pair: pair[1])
        return [
            NearbyCafe(
                cafe=_to_entity(row),
                distance_meters=distance,
                vibe_scores=vibes.get(row.id, {}),
                amenity_scores=amenities.get(row.id, {}),
            )
            for row, distance in in_range
        ]

    @staticmethod
    async def _load_scores(
        session: AsyncSession,
        model: type[VibeScoreRow] | type[AmenityScoreRow],
        cafe_ids: list[str],
    ) -> dict[str, dict[str, float]]:
        if not cafe_ids:
            return {}

        result = await session.scalars(select(model).where(model.cafe_id.in_(cafe_ids)))
        scores: dict[str, dict[str, float]] = {}
        for row in result.all():
            scores.setdefault(row.cafe_id, {})[row.category] = row.confidence
        return scores

    async def replace_analysis(
        self,
        cafe_id: str,
        vibe_scores: dict[str, float],
        amenity_scores: dict[str, float],
        analyzed_at: float,
    ) -> None:
        async with self._sessions() as session, session.begin():
            await session.execute(delete(VibeScoreRow).where(VibeScoreRow.cafe_id == cafe_id))
            await session.execute(
                delete(AmenityScoreRow).where(AmenityScoreRow.cafe_id == cafe_id)
            )
            session.add_all(
                VibeScoreRow(
                    cafe_id=cafe_id, category=category, confidence=value, analyzed_at=analyzed_at
                )
                for category, value in vibe_scores.items()
            )
            session.add_all(
                AmenityScoreRow(
                    cafe_id=cafe_id, category=category, confidence=value, analyzed_at=analyzed_at
                )
                for category, value in amenity_scores.items()
            )
            await session.merge(
                AnalysisRunRow(
                    cafe_id=cafe_id,
                    vibes_analyzed_at=analyzed_at,
                    amenities_analyzed_at=analyzed_at,
                )
            )

    async def get_analysis_timestamps(self, cafe_id: str) -> tuple[float | None, float | None]:
        async with self._sessions() as session:
            run = await session.get(AnalysisRunRow, cafe_id)

        if run is None:
            return None, None
        return run.vibes_analyzed_at, run.amenities_analyzed_at

    async def get_search_entry(self, search_key: str) -> SearchCacheEntry | None:
        async with self._sessions() as session:
            row = await session.get(SearchCacheRow, search_key)

        if row is None:
            return None
        return SearchCacheEntry(
            search_key=row.search_key,
            entity_ids=list(row.entity_ids),
            updated_at=row.updated_at,
        )

    async def put_search_entry(self, entry: SearchCacheEntry) -> None:
        async with self._sessions() as session, session.begin():
            await session.merge(
                SearchCacheRow(
                    search_key=entry.search_key,
                    entity_ids=list(entry.entity_ids),
                    updated_at=entry.updated_at,
                )
            )

    async def delete_search_entry(self, search_key: str) -> bool:
        async with self._sessions() as session, session.begin():
            result = await session.execute(
                delete(SearchCacheRow).where(SearchCacheRow.search_key == search_key)
            )
        return result.rowcount > 0

    async def clear_search_entries(self) -> int:
        async with self._sessions() as session, session.begin():
            result = await session.execute(delete(SearchCacheRow))
        return result.rowcount

    async def health_check(self) -> bool:
        """Check if the database is reachable.

        Returns:
            True if healthy, False otherwise
        """
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.warning("Durable store health check failed", exc_info=True)
            return False
