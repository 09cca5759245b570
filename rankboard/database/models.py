"""
SQLAlchemy Models for Rankboard

Tables:
1. global_keywords - keyword catalogue (volume, CPC, competitor ranks)
2. clients - local businesses being tracked
3. client_keywords - keyword assignments with the client's own ranks
4. competitors - named competitors, optionally owned by a client
5. competitor_keywords - ordered (keyword, rank) observations per competitor

Ids are UUID strings so the same schema runs on SQLite and PostgreSQL.
"""

import enum
from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Column, String, Integer, Float, DateTime, Text,
    ForeignKey, Enum, Index, CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _uuid() -> str:
    return str(uuid4())


def _rank_checks(table: str, *columns: str) -> tuple:
    """Nullable rank columns: unset, or 1 and up."""
    return tuple(
        CheckConstraint(f"{col} IS NULL OR {col} >= 1", name=f"ck_{table}_{col}")
        for col in columns
    )


# =============================================================================
# ENUMS
# =============================================================================

class CompetitionLevel(enum.Enum):
    """Advertiser competition for a keyword"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# =============================================================================
# KEYWORD CATALOGUE
# =============================================================================

class GlobalKeyword(Base):
    """Keywords - shared catalogue assigned to clients"""
    __tablename__ = "global_keywords"

    id = Column(String(36), primary_key=True, default=_uuid)

    keyword = Column(String(500), nullable=False)
    category = Column(String(100))

    # Search metrics
    search_volume = Column(Integer, nullable=False, default=0)
    competition = Column(Enum(CompetitionLevel), default=CompetitionLevel.MEDIUM)
    cpc = Column(Float, nullable=False, default=0.0)

    # Competitor rank observations (each slot optional on its own)
    competitor_1 = Column(Integer)
    competitor_2 = Column(Integer)
    competitor_3 = Column(Integer)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    assignments = relationship("ClientKeyword", back_populates="keyword", cascade="all, delete-orphan")
    competitor_ranks = relationship("CompetitorKeyword", back_populates="keyword", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("search_volume >= 0", name="ck_keyword_volume"),
        CheckConstraint("cpc >= 0", name="ck_keyword_cpc"),
        Index("idx_global_keyword_text", "keyword"),
        Index("idx_global_keyword_category", "category"),
        *_rank_checks("keyword", "competitor_1", "competitor_2", "competitor_3"),
    )


# =============================================================================
# CLIENTS
# =============================================================================

class Client(Base):
    """Local businesses whose rankings are tracked"""
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=_uuid)

    business_name = Column(String(255), nullable=False)
    area = Column(String(255))
    location = Column(String(255))
    category = Column(String(100))
    phone_number = Column(String(50))
    address = Column(Text)

    # Scores (0-100)
    gbp_score = Column(Float, default=0.0)
    damage_score = Column(Float, default=0.0)

    # Revenue inputs
    avg_job_price = Column(Float)

    # Display names for the three competitor rank slots
    competitor_1_name = Column(String(255))
    competitor_2_name = Column(String(255))
    competitor_3_name = Column(String(255))

    # Manual overrides for the dashboard ranking counts
    manual_top3_count = Column(Integer)
    manual_top10_count = Column(Integer)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    keywords = relationship("ClientKeyword", back_populates="client", cascade="all, delete-orphan")
    competitors = relationship("Competitor", back_populates="client")

    __table_args__ = (
        CheckConstraint("gbp_score >= 0 AND gbp_score <= 100", name="ck_client_gbp_score"),
        CheckConstraint("damage_score >= 0 AND damage_score <= 100", name="ck_client_damage_score"),
        Index("idx_client_name", "business_name"),
    )


class ClientKeyword(Base):
    """Keyword assigned to a client, with the client's own ranks"""
    __tablename__ = "client_keywords"

    id = Column(String(36), primary_key=True, default=_uuid)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    keyword_id = Column(String(36), ForeignKey("global_keywords.id", ondelete="CASCADE"), nullable=False)

    current_rank = Column(Integer)
    target_rank = Column(Integer, nullable=False, default=1)
    cpc = Column(Float)  # None = use the keyword's CPC

    # Independent of the keyword's own competitor ranks
    competitor_1 = Column(Integer)
    competitor_2 = Column(Integer)
    competitor_3 = Column(Integer)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    client = relationship("Client", back_populates="keywords")
    keyword = relationship("GlobalKeyword", back_populates="assignments")

    __table_args__ = (
        UniqueConstraint("client_id", "keyword_id", name="uq_client_keyword"),
        CheckConstraint("target_rank >= 1", name="ck_client_keyword_target"),
        *_rank_checks("client_keyword", "current_rank", "competitor_1", "competitor_2", "competitor_3"),
        Index("idx_client_keyword_client", "client_id"),
    )

    @property
    def effective_cpc(self) -> float:
        if self.cpc is not None:
            return self.cpc
        return self.keyword.cpc if self.keyword else 0.0


# =============================================================================
# COMPETITORS
# =============================================================================

class Competitor(Base):
    """Named competitors in an area"""
    __tablename__ = "competitors"

    id = Column(String(36), primary_key=True, default=_uuid)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True)

    competitor_name = Column(String(255), nullable=False)
    area = Column(String(255), nullable=False, default="")
    category = Column(String(100))

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    client = relationship("Client", back_populates="competitors")
    keyword_ranks = relationship(
        "CompetitorKeyword",
        back_populates="competitor",
        cascade="all, delete-orphan",
        order_by="CompetitorKeyword.position",
    )

    __table_args__ = (
        Index("idx_competitor_client", "client_id"),
    )


class CompetitorKeyword(Base):
    """Observed rank of a competitor for a keyword"""
    __tablename__ = "competitor_keywords"

    id = Column(String(36), primary_key=True, default=_uuid)
    competitor_id = Column(String(36), ForeignKey("competitors.id", ondelete="CASCADE"), nullable=False)
    keyword_id = Column(String(36), ForeignKey("global_keywords.id", ondelete="CASCADE"), nullable=False)

    rank = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False, default=0)  # order within the competitor

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    competitor = relationship("Competitor", back_populates="keyword_ranks")
    keyword = relationship("GlobalKeyword", back_populates="competitor_ranks")

    __table_args__ = (
        UniqueConstraint("competitor_id", "keyword_id", name="uq_competitor_keyword"),
        CheckConstraint("rank >= 1", name="ck_competitor_keyword_rank"),
    )
