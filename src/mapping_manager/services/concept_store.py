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
Concept Store.
Owns local concept rows and their active/invalidated lifecycle.
"""

from datetime import date
from typing import List, NamedTuple, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mapping_manager.models.mapping import MappingConcept
from mapping_manager.schemas.concept import MappedConceptCreate
from mapping_manager.services.clock import SENTINEL_END_DATE
from mapping_manager.services.exceptions import ConceptConflict, ConceptNotFound


class NaturalKey(NamedTuple):
    domain_id: str
    vocabulary_id: str
    concept_code: str
    concept_class_id: str

    @classmethod
    def of(cls, draft: MappedConceptCreate) -> "NaturalKey":
        return cls(draft.domain_id, draft.vocabulary_id, draft.concept_code, draft.concept_class_id)


class ConceptStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_active_duplicate(self, key: NaturalKey) -> Optional[MappingConcept]:
        """
        Returns an active concept carrying the natural key, if any.
        Invalidated concepts never block reuse of their key.
        """
        stmt = select(MappingConcept).where(
            MappingConcept.domain_id == key.domain_id,
            MappingConcept.vocabulary_id == key.vocabulary_id,
            MappingConcept.concept_code == key.concept_code,
            MappingConcept.concept_class_id == key.concept_class_id,
            MappingConcept.invalid_reason.is_(None),
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def insert(self, draft: MappedConceptCreate, as_of: date) -> int:
        """
        Stores a new active concept and returns its id.
        The id comes from the store. Raises ConceptConflict when the active natural key is already taken.
        """
        concept = MappingConcept(
            concept_name=draft.concept_name,
            domain_id=draft.domain_id,
            vocabulary_id=draft.vocabulary_id,
            concept_class_id=draft.concept_class_id,
            standard_concept=draft.standard_concept,
            concept_code=draft.concept_code,
            valid_start_date=as_of,
            valid_end_date=SENTINEL_END_DATE,
            invalid_reason=None,
        )
        self.db.add(concept)

        try:
            # Flush to get the ID and surface uniqueness violations early
            await self.db.flush()
        except IntegrityError as e:
            raise ConceptConflict(
                f"Concept {NaturalKey.of(draft)} conflicts with an existing active concept."
            ) from e

        return concept.concept_id

    async def get(self, concept_id: int, for_update: bool = False) -> MappingConcept:
        """
        Fetches a concept by id whatever its state.
        With for_update the row stays locked until the surrounding transaction ends.
        """
        stmt = (
            select(MappingConcept)
            .where(MappingConcept.concept_id == concept_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        concept = result.scalar_one_or_none()
        if concept is None:
            raise ConceptNotFound(concept_id)
        return concept

    async def get_active(self, concept_id: int, for_update: bool = False) -> MappingConcept:
        concept = await self.get(concept_id, for_update=for_update)
        if concept.invalid_reason is not None:
            raise ConceptNotFound(concept_id)
        return concept

    async def list_active(self) -> List[MappingConcept]:
        stmt = (
            select(MappingConcept)
            .where(MappingConcept.invalid_reason.is_(None))
            .order_by(MappingConcept.concept_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def invalidate(self, concept_id: int, reason: str, as_of: date) -> bool:
        """
        Closes the validity window of an active concept.
        Returns False when the concept is unknown or already invalidated.
        """
        stmt = (
            update(MappingConcept)
            .where(MappingConcept.concept_id == concept_id, MappingConcept.invalid_reason.is_(None))
            .values(valid_end_date=as_of, invalid_reason=reason)
            .returning(MappingConcept.concept_id)
        )
        result = await self.db.execute(stmt)
        return len(result.scalars().all()) > 0
