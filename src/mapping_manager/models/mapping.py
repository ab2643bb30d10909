# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/omop_atlas_backend

"""
Locally-owned mapping tables.
Both tables are temporally versioned: rows are never deleted, only invalidated.
"""

from datetime import date
from typing import Optional

from sqlalchemy import Date, ForeignKey, Index, Integer, Sequence, String, text
from sqlalchemy.orm import Mapped, mapped_column

from mapping_manager.models.base import Base

# OMOP reserves concept ids >= 2 billion for site-local concepts.
LOCAL_CONCEPT_ID_START = 2_000_000_000

MAPS_TO = "Maps to"

INVALID_REASON_UPDATED = "U"
INVALID_REASON_DELETED = "D"

ACTIVE_ONLY = text("invalid_reason IS NULL")


class MappingConcept(Base):
    """
    A locally defined concept (lab test, observation, ...) awaiting a standard mapping.
    The natural key is unique among active rows only.
    """

    __tablename__ = "mapping_concept"
    __table_args__ = (
        Index(
            "uq_mapping_concept_active_natural_key",
            "domain_id",
            "vocabulary_id",
            "concept_code",
            "concept_class_id",
            unique=True,
            postgresql_where=ACTIVE_ONLY,
            sqlite_where=ACTIVE_ONLY,
        ),
    )

    concept_id: Mapped[int] = mapped_column(
        Integer,
        Sequence("mapping_concept_id_seq", start=LOCAL_CONCEPT_ID_START),
        primary_key=True,
    )
    concept_name: Mapped[str] = mapped_column(String(255))
    domain_id: Mapped[str] = mapped_column(String(20))
    vocabulary_id: Mapped[str] = mapped_column(String(20))
    concept_class_id: Mapped[str] = mapped_column(String(20))
    standard_concept: Mapped[Optional[str]] = mapped_column(String(1), nullable=True)
    concept_code: Mapped[str] = mapped_column(String(50))
    valid_start_date: Mapped[date] = mapped_column(Date)
    valid_end_date: Mapped[date] = mapped_column(Date)
    invalid_reason: Mapped[Optional[str]] = mapped_column(String(1), nullable=True)

    def __repr__(self) -> str:
        return f"<MappingConcept(concept_id={self.concept_id}, invalid_reason={self.invalid_reason!r})>"


class MappingConceptRelationship(Base):
    """
    A versioned "Maps to" edge from a local concept to a target terminology concept.
    At most one row per source concept has a NULL invalid_reason.
    """

    __tablename__ = "mapping_concept_relationship"
    __table_args__ = (
        Index("ix_mapping_concept_relationship_id_1", "concept_id_1"),
        Index("ix_mapping_concept_relationship_id_2", "concept_id_2"),
    )

    concept_relationship_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    concept_id_1: Mapped[int] = mapped_column(Integer, ForeignKey("mapping_concept.concept_id"), nullable=False)
    # Target lives in the external vocabulary, so no foreign key.
    concept_id_2: Mapped[int] = mapped_column(Integer, nullable=False)
    relationship_id: Mapped[str] = mapped_column(String(20), default=MAPS_TO)
    valid_start_date: Mapped[date] = mapped_column(Date)
    valid_end_date: Mapped[date] = mapped_column(Date)
    invalid_reason: Mapped[Optional[str]] = mapped_column(String(1), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<MappingConceptRelationship({self.concept_id_1} -> {self.concept_id_2}, "
            f"invalid_reason={self.invalid_reason!r})>"
        )
