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
Versioning Engine.
Creates, retargets and retires local concepts and their "Maps to" edges.

Every write runs inside a single transaction. Invalidating updates are guarded by
``invalid_reason IS NULL`` and the engine branches on the number of rows they
touched, so two writers racing on the same concept cannot both succeed. Retarget
also locks the concept row, which orders it against a concurrent Delete.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mapping_manager.models.mapping import (
    INVALID_REASON_DELETED,
    INVALID_REASON_UPDATED,
    MappingConcept,
    MappingConceptRelationship,
)
from mapping_manager.models.vocabulary import Concept
from mapping_manager.schemas.concept import MappedConceptCreate
from mapping_manager.services.clock import SENTINEL_END_DATE, Clock, SystemClock
from mapping_manager.services.concept_store import ConceptStore, NaturalKey
from mapping_manager.services.exceptions import (
    ConceptConflict,
    ConceptNotFound,
    StoreFailure,
    TargetConceptNotFound,
)
from mapping_manager.services.relationship_ledger import RelationshipLedger
from mapping_manager.services.terminology import TargetTerminology
from mapping_manager.utils.logger import logger


class MappingService:
    """
    Service for local concept mapping operations.
    """

    def __init__(self, db: AsyncSession, terminology: TargetTerminology, clock: Optional[Clock] = None):
        self.db = db
        self.concepts = ConceptStore(db)
        self.relationships = RelationshipLedger(db)
        self.terminology = terminology
        self.clock: Clock = clock or SystemClock()

    @asynccontextmanager
    async def _store_errors(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.opt(exception=e).error(f"{operation}: store failure")
            raise StoreFailure(f"{operation} failed.") from e

    @asynccontextmanager
    async def transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """
        Scope for a multi-statement write.
        Commits when the block completes, rolls back every statement if anything inside raises.
        """
        async with self._store_errors(operation):
            if self.db.in_transaction():
                # Only reads can have run since the last write committed
                await self.db.rollback()
            async with self.db.begin():
                yield self.db

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, draft: MappedConceptCreate) -> int:
        """
        Creates a local concept and its first mapping to draft.maps_to_concept_id.
        Returns the new concept id.
        """
        key = NaturalKey.of(draft)
        today = self.clock.today()

        async with self.transaction("create"):
            if await self.concepts.find_active_duplicate(key) is not None:
                logger.warning(f"Rejected create: active concept already exists for {key}")
                raise ConceptConflict(f"An active concept already exists for {tuple(key)}.")

            if not await self.terminology.exists(draft.maps_to_concept_id):
                logger.warning(f"Rejected create: target concept {draft.maps_to_concept_id} does not exist")
                raise TargetConceptNotFound(draft.maps_to_concept_id)

            concept_id = await self.concepts.insert(draft, today)
            await self.relationships.insert(concept_id, draft.maps_to_concept_id, today, SENTINEL_END_DATE)

        logger.info(f"Created concept {concept_id} mapped to {draft.maps_to_concept_id}")
        return concept_id

    async def retarget(self, concept_id: int, target_id: int) -> None:
        """
        Supersedes the active mapping of concept_id with a new one pointing at target_id.
        Each call produces a new version, even when the target is unchanged.
        """
        today = self.clock.today()

        async with self.transaction("retarget"):
            # Lock the concept row so a concurrent delete waits for this version to land, or wins first
            try:
                await self.concepts.get_active(concept_id, for_update=True)
            except ConceptNotFound:
                logger.warning(f"Rejected retarget: concept {concept_id} is unknown or deleted")
                raise

            superseded = await self.relationships.invalidate_all_active(concept_id, INVALID_REASON_UPDATED, today)
            if superseded == 0:
                logger.warning(f"Rejected retarget: concept {concept_id} has no active mapping")
                raise ConceptNotFound(concept_id, f"Concept with ID {concept_id} has no active mapping.")

            if not await self.terminology.exists(target_id):
                logger.warning(f"Rejected retarget: target concept {target_id} does not exist")
                raise TargetConceptNotFound(target_id)

            await self.relationships.insert(concept_id, target_id, today, SENTINEL_END_DATE)

        logger.info(f"Retargeted concept {concept_id} to {target_id}")

    async def delete(self, concept_id: int) -> None:
        """
        Retires concept_id and every active mapping leaving it.
        Superseded mappings keep their 'U' reason.
        """
        today = self.clock.today()

        async with self.transaction("delete"):
            if not await self.concepts.invalidate(concept_id, INVALID_REASON_DELETED, today):
                logger.warning(f"Rejected delete: concept {concept_id} is unknown or already deleted")
                raise ConceptNotFound(concept_id)

            cascaded = await self.relationships.invalidate_all_active(concept_id, INVALID_REASON_DELETED, today)

        logger.info(f"Deleted concept {concept_id} ({cascaded} active mapping(s) invalidated)")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_concepts(self) -> List[MappingConcept]:
        async with self._store_errors("list_concepts"):
            return await self.concepts.list_active()

    async def get_concept(self, concept_id: int) -> MappingConcept:
        """Returns the concept even when it has been invalidated."""
        async with self._store_errors("get_concept"):
            return await self.concepts.get(concept_id)

    async def get_active_target(self, concept_id: int) -> Concept:
        async with self._store_errors("get_active_target"):
            return await self.relationships.get_active_target(concept_id)

    async def get_mapping_history(self, concept_id: int) -> List[MappingConceptRelationship]:
        async with self._store_errors("get_mapping_history"):
            await self.concepts.get(concept_id)
            return await self.relationships.list_for_source(concept_id)

    async def list_relationships(self) -> List[MappingConceptRelationship]:
        async with self._store_errors("list_relationships"):
            return await self.relationships.list_all()
