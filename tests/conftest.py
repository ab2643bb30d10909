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
from typing import Any, AsyncGenerator, Callable

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from mapping_manager.models.base import Base
from mapping_manager.models.vocabulary import Concept
from mapping_manager.schemas.concept import MappedConceptCreate
from mapping_manager.services.clock import FixedClock
from mapping_manager.services.mapping import MappingService
from mapping_manager.services.terminology import TargetTerminology

TODAY = date(2024, 5, 1)

# Standard concepts seeded into the target vocabulary
HAEMOGLOBIN_MASS = 37171451
HAEMOGLOBIN_CONCENTRATION = 37208644
PLATELET_COUNT = 37393863
UNKNOWN_TARGET = 999999


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async_session_maker = async_sessionmaker(async_engine, expire_on_commit=False)
    async with async_session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def target_concepts(async_session: AsyncSession) -> list[Concept]:
    concepts = [
        Concept(
            concept_id=concept_id,
            concept_name=name,
            domain_id="Measurement",
            vocabulary_id="SNOMED",
            concept_class_id="Observable Entity",
            standard_concept="S",
            concept_code=code,
            valid_start_date=date(2002, 1, 31),
            valid_end_date=date(2099, 12, 31),
            invalid_reason=None,
        )
        for concept_id, name, code in [
            (HAEMOGLOBIN_MASS, "Hemoglobin mass", "1022451000000100"),
            (HAEMOGLOBIN_CONCENTRATION, "Hemoglobin concentration", "1022431000000105"),
            (PLATELET_COUNT, "Platelet count", "1022651000000100"),
        ]
    ]
    async_session.add_all(concepts)
    await async_session.commit()
    return concepts


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(TODAY)


@pytest.fixture
def mapping_service(async_session: AsyncSession, clock: FixedClock) -> MappingService:
    return MappingService(async_session, TargetTerminology(async_session), clock)


@pytest.fixture
def make_draft() -> Callable[..., MappedConceptCreate]:
    """Builds a create request for the haemoglobin lab code, with optional overrides."""

    def _make(**overrides: Any) -> MappedConceptCreate:
        fields: dict[str, Any] = {
            "concept_name": "FBC_Haemoglobin",
            "domain_id": "LIMS.BloodResults",
            "vocabulary_id": "GSTT",
            "concept_class_id": "Observable Entity",
            "concept_code": "FBC_Hb_Mass",
            "maps_to_concept_id": HAEMOGLOBIN_MASS,
        }
        fields.update(overrides)
        return MappedConceptCreate(**fields)

    return _make
