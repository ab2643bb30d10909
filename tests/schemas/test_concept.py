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

import pytest
from pydantic import ValidationError

from mapping_manager.schemas.concept import Concept, ConceptIdentifier, ConceptRelationship, MappedConceptCreate


def test_concept_schema_aliasing() -> None:
    """Test that Concept schema handles camelCase aliases correctly."""
    data = {
        "conceptId": 2000000000,
        "conceptName": "FBC_Haemoglobin",
        "domainId": "LIMS.BloodResults",
        "vocabularyId": "GSTT",
        "conceptClassId": "Observable Entity",
        "standardConcept": None,
        "conceptCode": "FBC_Hb_Mass",
        "validStartDate": "2024-05-01",
        "validEndDate": "2099-12-31",
        "invalidReason": "D",
    }

    concept = Concept(**data)

    assert concept.concept_id == 2000000000
    assert concept.valid_end_date == date(2099, 12, 31)
    assert concept.invalid_reason == "D"

    dump = concept.model_dump(by_alias=True)
    assert dump["conceptId"] == 2000000000
    assert "concept_id" not in dump


def test_relationship_schema_aliasing() -> None:
    relationship = ConceptRelationship(
        concept_id_1=2000000000,
        concept_id_2=37171451,
        relationship_id="Maps to",
        valid_start_date=date(2024, 5, 1),
        valid_end_date=date(2099, 12, 31),
    )

    dump = relationship.model_dump(by_alias=True)
    assert dump["conceptId1"] == 2000000000
    assert dump["conceptId2"] == 37171451
    assert dump["invalidReason"] is None


def test_mapped_concept_create_accepts_both_spellings() -> None:
    snake = MappedConceptCreate(
        concept_name="FBC_Haemoglobin",
        domain_id="LIMS.BloodResults",
        vocabulary_id="GSTT",
        concept_class_id="Observable Entity",
        concept_code="FBC_Hb_Mass",
        maps_to_concept_id=37171451,
    )
    camel = MappedConceptCreate.model_validate(
        {
            "conceptName": "FBC_Haemoglobin",
            "domainId": "LIMS.BloodResults",
            "vocabularyId": "GSTT",
            "conceptClassId": "Observable Entity",
            "conceptCode": "FBC_Hb_Mass",
            "mapsToConceptId": 37171451,
        }
    )

    assert snake == camel
    assert snake.standard_concept is None


def test_mapped_concept_create_rejects_oversized_domain() -> None:
    with pytest.raises(ValidationError):
        MappedConceptCreate(
            concept_name="FBC_Haemoglobin",
            domain_id="X" * 21,
            vocabulary_id="GSTT",
            concept_class_id="Observable Entity",
            concept_code="FBC_Hb_Mass",
            maps_to_concept_id=37171451,
        )


def test_concept_identifier_requires_id() -> None:
    assert ConceptIdentifier.model_validate({"conceptId": 37208644}).concept_id == 37208644
    with pytest.raises(ValidationError):
        ConceptIdentifier.model_validate({})


def test_mapped_concept_create_rejects_caller_supplied_id() -> None:
    with pytest.raises(ValidationError):
        MappedConceptCreate.model_validate(
            {
                "conceptId": 2000000001,
                "conceptName": "FBC_Haemoglobin",
                "domainId": "LIMS.BloodResults",
                "vocabularyId": "GSTT",
                "conceptClassId": "Observable Entity",
                "conceptCode": "FBC_Hb_Mass",
                "mapsToConceptId": 37171451,
            }
        )
