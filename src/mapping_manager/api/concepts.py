# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/omop_atlas_backend

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from mapping_manager.dependencies import get_mapping_service
from mapping_manager.schemas.concept import Concept, ConceptIdentifier, ConceptRelationship, MappedConceptCreate
from mapping_manager.services.exceptions import (
    ConceptConflict,
    ConceptNotFound,
    StoreFailure,
    TargetConceptNotFound,
)
from mapping_manager.services.mapping import MappingService

router = APIRouter(tags=["Concept Mapping"])

INTERNAL_ERROR = "Internal server error"


@router.get("/concepts", response_model=List[Concept], response_model_by_alias=True)
async def list_concepts(
    service: MappingService = Depends(get_mapping_service),  # noqa: B008
) -> List[Concept]:
    """
    List active local concepts.
    """
    try:
        concepts = await service.list_concepts()
    except StoreFailure as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR) from e
    return [Concept.model_validate(c) for c in concepts]


@router.post("/concept", response_model=ConceptIdentifier, response_model_by_alias=True)
async def create_concept(
    data: MappedConceptCreate,
    service: MappingService = Depends(get_mapping_service),  # noqa: B008
) -> ConceptIdentifier:
    """
    Create a local concept mapped to a standard concept.
    """
    try:
        concept_id = await service.create(data)
    except ConceptConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Duplicate entry") from e
    except TargetConceptNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="OMOP Concept does not exist") from e
    except StoreFailure as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR) from e
    return ConceptIdentifier(concept_id=concept_id)


@router.get("/concept/{concept_id}", response_model=Concept, response_model_by_alias=True)
async def get_concept(
    concept_id: int,
    service: MappingService = Depends(get_mapping_service),  # noqa: B008
) -> Concept:
    """
    Get a local concept by ID, including invalidated ones.
    """
    try:
        return Concept.model_validate(await service.get_concept(concept_id))
    except ConceptNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Concept not found") from e
    except StoreFailure as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR) from e


@router.patch("/concept/{concept_id}")
async def update_target_concept(
    concept_id: int,
    data: ConceptIdentifier,
    service: MappingService = Depends(get_mapping_service),  # noqa: B008
) -> Response:
    """
    Point a concept's mapping at a different standard concept.
    """
    try:
        await service.retarget(concept_id, data.concept_id)
    except ConceptNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except TargetConceptNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="OMOP Concept does not exist") from e
    except StoreFailure as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR) from e
    return Response(status_code=status.HTTP_200_OK)


@router.delete("/concept/{concept_id}")
async def delete_concept(
    concept_id: int,
    service: MappingService = Depends(get_mapping_service),  # noqa: B008
) -> Response:
    """
    Retire a concept and its active mapping.
    """
    try:
        await service.delete(concept_id)
    except ConceptNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Concept not found") from e
    except StoreFailure as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR) from e
    return Response(status_code=status.HTTP_200_OK)


@router.get("/concept/{concept_id}/target", response_model=Concept, response_model_by_alias=True)
async def get_source_concept_target(
    concept_id: int,
    service: MappingService = Depends(get_mapping_service),  # noqa: B008
) -> Concept:
    """
    Get the standard concept a local concept currently maps to.
    """
    try:
        return Concept.model_validate(await service.get_active_target(concept_id))
    except ConceptNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except StoreFailure as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR) from e


@router.get(
    "/concept/{concept_id}/relationships",
    response_model=List[ConceptRelationship],
    response_model_by_alias=True,
)
async def get_concept_mapping_history(
    concept_id: int,
    service: MappingService = Depends(get_mapping_service),  # noqa: B008
) -> List[ConceptRelationship]:
    """
    Get every mapping version of a local concept, oldest first.
    """
    try:
        history = await service.get_mapping_history(concept_id)
    except ConceptNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Concept not found") from e
    except StoreFailure as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR) from e
    return [ConceptRelationship.model_validate(r) for r in history]


@router.get("/concept_relationships", response_model=List[ConceptRelationship], response_model_by_alias=True)
async def list_concept_relationships(
    service: MappingService = Depends(get_mapping_service),  # noqa: B008
) -> List[ConceptRelationship]:
    """
    List every mapping row, active and historical.
    """
    try:
        relationships = await service.list_relationships()
    except StoreFailure as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR) from e
    return [ConceptRelationship.model_validate(r) for r in relationships]
