# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/omop_atlas_backend

from datetime import date
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import HAEMOGLOBIN_MASS
from mapping_manager.models.vocabulary import Concept
from mapping_manager.schemas.concept import Concept as ConceptSchema
from mapping_manager.services.terminology import TargetTerminology


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Mock Redis client."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock()
    return redis


@pytest.mark.asyncio
async def test_exists_without_cache(async_session: AsyncSession, target_concepts: list[Concept]) -> None:
    terminology = TargetTerminology(async_session)

    assert await terminology.exists(HAEMOGLOBIN_MASS) is True
    assert await terminology.exists(999999) is False


@pytest.mark.asyncio
async def test_cache_miss_reads_database_and_sets_cache(
    async_session: AsyncSession, target_concepts: list[Concept], mock_redis: AsyncMock
) -> None:
    terminology = TargetTerminology(async_session, mock_redis)

    concept = await terminology.get(HAEMOGLOBIN_MASS)

    assert concept is not None
    assert concept.concept_name == "Hemoglobin mass"
    mock_redis.get.assert_awaited_once_with("targetConcept:37171451")
    key, payload = mock_redis.set.call_args.args
    assert key == "targetConcept:37171451"
    assert ConceptSchema.model_validate_json(payload).concept_id == HAEMOGLOBIN_MASS


@pytest.mark.asyncio
async def test_unknown_target_is_not_cached(
    async_session: AsyncSession, target_concepts: list[Concept], mock_redis: AsyncMock
) -> None:
    terminology = TargetTerminology(async_session, mock_redis)

    assert await terminology.get(999999) is None
    mock_redis.set.assert_not_called()


@pytest.mark.asyncio
async def test_cache_hit_skips_database(mock_redis: AsyncMock) -> None:
    cached = ConceptSchema(
        concept_id=HAEMOGLOBIN_MASS,
        concept_name="Cached haemoglobin",
        domain_id="Measurement",
        vocabulary_id="SNOMED",
        concept_class_id="Observable Entity",
        standard_concept="S",
        concept_code="1022451000000100",
        valid_start_date=date(2002, 1, 31),
        valid_end_date=date(2099, 12, 31),
    )
    mock_redis.get.return_value = cached.model_dump_json(by_alias=True)
    mock_db_session = AsyncMock(spec=AsyncSession)

    concept = await TargetTerminology(mock_db_session, mock_redis).get(HAEMOGLOBIN_MASS)

    assert concept is not None
    assert concept.concept_name == "Cached haemoglobin"
    mock_db_session.execute.assert_not_called()


@pytest.mark.asyncio
async def test_corrupt_cache_entry_falls_back_to_database(
    async_session: AsyncSession, target_concepts: list[Concept], mock_redis: AsyncMock
) -> None:
    mock_redis.get.return_value = "{not json"

    concept = await TargetTerminology(async_session, mock_redis).get(HAEMOGLOBIN_MASS)

    assert concept is not None
    assert concept.concept_name == "Hemoglobin mass"
    mock_redis.set.assert_awaited_once()


@pytest.mark.asyncio
async def test_redis_outage_falls_back_to_database(
    async_session: AsyncSession, target_concepts: list[Concept], mock_redis: AsyncMock
) -> None:
    mock_redis.get.side_effect = RedisConnectionError("Connection refused")
    mock_redis.set.side_effect = RedisConnectionError("Connection refused")

    assert await TargetTerminology(async_session, mock_redis).exists(HAEMOGLOBIN_MASS) is True
