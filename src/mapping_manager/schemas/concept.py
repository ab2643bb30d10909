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
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Concept(BaseModel):
    """
    Pydantic model for an OMOP Concept row.
    Used for both local mapping concepts and target terminology concepts.
    """

    concept_id: int = Field(alias="conceptId")
    concept_name: str = Field(alias="conceptName")
    domain_id: str = Field(alias="domainId")
    vocabulary_id: str = Field(alias="vocabularyId")
    concept_class_id: str = Field(alias="conceptClassId")
    standard_concept: Optional[str] = Field(None, alias="standardConcept")
    concept_code: str = Field(alias="conceptCode")
    valid_start_date: date = Field(alias="validStartDate")
    valid_end_date: date = Field(alias="validEndDate")
    invalid_reason: Optional[str] = Field(None, alias="invalidReason")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class ConceptRelationship(BaseModel):
    """
    Pydantic model for a versioned mapping edge.
    """

    concept_id_1: int = Field(alias="conceptId1")
    concept_id_2: int = Field(alias="conceptId2")
    relationship_id: str = Field(alias="relationshipId")
    valid_start_date: date = Field(alias="validStartDate")
    valid_end_date: date = Field(alias="validEndDate")
    invalid_reason: Optional[str] = Field(None, alias="invalidReason")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class MappedConceptCreate(BaseModel):
    """
    Request body for creating a local concept together with its first mapping.
    The concept id is always assigned by the store from the local range.
    """

    concept_name: str = Field(alias="conceptName", min_length=1, max_length=255)
    domain_id: str = Field(alias="domainId", min_length=1, max_length=20)
    vocabulary_id: str = Field(alias="vocabularyId", min_length=1, max_length=20)
    concept_class_id: str = Field(alias="conceptClassId", min_length=1, max_length=20)
    concept_code: str = Field(alias="conceptCode", min_length=1, max_length=50)
    standard_concept: Optional[str] = Field(None, alias="standardConcept", max_length=1)
    maps_to_concept_id: int = Field(alias="mapsToConceptId")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class ConceptIdentifier(BaseModel):
    """
    A bare concept id. Returned by create, accepted as the new target when retargeting.
    """

    concept_id: int = Field(alias="conceptId")

    model_config = ConfigDict(populate_by_name=True)
