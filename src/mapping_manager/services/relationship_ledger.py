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
Relationship Ledger.
Owns the versioned "Maps to" edges between local concepts and target concepts.
"""

from datetime import date
from typing import List

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mapping_manager.models.mapping import MAPS_TO, MappingConceptRelationship
from mapping_manager.models.vocabulary import Concept
from mapping_manager.services.exceptions import ConceptNotFound


class RelationshipLedger:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active_target(self, source_id: int) -> Concept:
        """
        Resolves the target concept of the active mapping for source_id.
        Raises ConceptNotFound when the source was never mapped or has been deleted.
        """
        stmt = (
            select(Concept)
            .join(MappingConceptRelationship, MappingConceptRelationship.concept_id_2 == Concept.concept_id)
            .where(
                MappingConceptRelationship.concept_id_1 == source_id,
                MappingConceptRelationship.invalid_reason.is_(None),
            )
        )
        result = await self.db.execute(stmt)
        target = result.scalars().first()
        if target is None:
            raise ConceptNotFound(source_id, f"Concept with ID {source_id} has no active mapping.")
        return target

    async def list_for_source(self, source_id: int) -> List[MappingConceptRelationship]:
        """Full version history of a source concept, oldest first."""
        stmt = (
            select(MappingConceptRelationship)
            .where(MappingConceptRelationship.concept_id_1 == source_id)
            .order_by(MappingConceptRelationship.concept_relationship_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_all(self) -> List[MappingConceptRelationship]:
        stmt = (
            select(MappingConceptRelationship)
            .order_by(MappingConceptRelationship.concept_relationship_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def invalidate_all_active(self, source_id: int, reason: str, as_of: date) -> int:
        """
        Invalidates every active edge leaving source_id and returns how many rows changed.
        Rows already invalidated keep their original reason.
        """
        stmt = (
            update(MappingConceptRelationship)
            .where(
                MappingConceptRelationship.concept_id_1 == source_id,
                MappingConceptRelationship.invalid_reason.is_(None),
            )
            .values(valid_end_date=as_of, invalid_reason=reason)
            .returning(MappingConceptRelationship.concept_relationship_id)
        )
        result = await self.db.execute(stmt)
        return len(result.scalars().all())

    async def insert(self, source_id: int, target_id: int, as_of: date, expiry: date) -> None:
        self.db.add(
            MappingConceptRelationship(
                concept_id_1=source_id,
                concept_id_2=target_id,
                relationship_id=MAPS_TO,
                valid_start_date=as_of,
                valid_end_date=expiry,
                invalid_reason=None,
            )
        )
        await self.db.flush()
