"""ORM tables backing the durable store.

Timestamps are Unix seconds stored as floats.
"""

from sqlalchemy import JSON, Column, Float, ForeignKey, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CafeRow(Base):
    """Cafe discovered through the place provider, keyed by external_id."""

    __tablename__ = "cafes"

    id = Column(String(36), primary_key=True)
    external_id = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    latitude = Column(Float, nullable=False, index=True)
    longitude = Column(Float, nullable=False, index=True)
    address = Column(Text, nullable=False, default="")
    price_tier = Column(String(3), nullable=True, index=True)
    reviews = Column(JSON, nullable=False, default=list)
    hours = Column(JSON, nullable=True)
    photos = Column(JSON, nullable=False, default=list)
    last_fetched = Column(Float, nullable=False)


class VibeScoreRow(Base):
    __tablename__ = "cafe_vibes"

    cafe_id = Column(String(36), ForeignKey("cafes.id", ondelete="CASCADE"), primary_key=True)
    category = Column(String, primary_key=True)
    confidence = Column(Float, nullable=False)
    analyzed_at = Column(Float, nullable=False, index=True)


class AmenityScoreRow(Base):
    __tablename__ = "cafe_amenities"

    cafe_id = Column(String(36), ForeignKey("cafes.id", ondelete="CASCADE"), primary_key=True)
    category = Column(String, primary_key=True)
    confidence = Column(Float, nullable=False)
    analyzed_at = Column(Float, nullable=False, index=True)


class AnalysisRunRow(Base):
    """Last analysis of a cafe, stamped even when no score passed its threshold."""

    __tablename__ = "cafe_analysis_runs"

    cafe_id = Column(String(36), ForeignKey("cafes.id", ondelete="CASCADE"), primary_key=True)
    vibes_analyzed_at = Column(Float, nullable=True)
    amenities_analyzed_at = Column(Float, nullable=True)


class SearchCacheRow(Base):
    __tablename__ = "search_cache"

    search_key = Column(String, primary_key=True)
    entity_ids = Column(JSON, nullable=False)
    updated_at = Column(Float, nullable=False, index=True)
