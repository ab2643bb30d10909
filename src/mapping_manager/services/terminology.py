# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/omop_atlas_backend

from typing import Optional

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mapping_manager.models.vocabulary import Concept
from mapping_manager.schemas.concept import Concept as ConceptSchema
from mapping_manager.utils.logger import logger


class TargetTerminology:
    """
    Read-only lookup into the standard vocabulary.
    Rows never change underneath this service, so cached entries are kept without expiry.
    """

    def __init__(self, db: AsyncSession, redis: Optional[Redis] = None):
        self.db = db
        self.redis = redis

    @staticmethod
    def cache_key(concept_id: int) -> str:
        return f"targetConcept:{concept_id}"

    async def get(self, concept_id: int) -> Optional[Concept]:
        cache_key = self.cache_key(concept_id)

        cached_data = await self._cache_get(cache_key)
        if cached_data:
            try:
                schema_obj = ConceptSchema.model_validate_json(cached_data)
                return Concept(**schema_obj.model_dump())
            except ValidationError:
                logger.warning(f"Discarding unreadable cache entry {cache_key}")

        stmt = select(Concept).where(Concept.concept_id == concept_id)
        result = await self.db.execute(stmt)
        concept = result.scalar_one_or_none()

        if concept:
            await self._cache_set(cache_key, ConceptSchema.model_validate(concept).model_dump_json(by_alias=True))

        return concept

    async def exists(self, concept_id: int) -> bool:
        return await self.get(concept_id) is not None

    async def _cache_get(self, key: str) -> Optional[str]:
        if not self.redis:
            return None
        try:
            return await self.redis.get(key)
        except RedisError as e:
            logger.warning(f"Redis unavailable, reading {key} from the database: {e}")
            return None

    async def _cache_set(self, key: str, value: str) -> None:
        if not self.redis:
            return
        try:
            await self.redis.set(key, value)
        except RedisError as e:
            logger.warning(f"Redis unavailable, {key} not cached: {e}")
