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
Service Layer Exceptions
"""


class ConceptNotFound(Exception):
    """Raised when a requested concept or its active mapping is not found."""

    def __init__(self, concept_id: int | str, message: str | None = None):
        self.concept_id = concept_id
        super().__init__(message or f"Concept with ID {concept_id} not found.")


class TargetConceptNotFound(Exception):
    """Raised when a target id does not resolve in the standard terminology."""

    def __init__(self, concept_id: int):
        self.concept_id = concept_id
        super().__init__(f"OMOP Concept with ID {concept_id} does not exist.")


class ConceptConflict(Exception):
    """Raised when an active concept already holds the natural key or the identity."""

    pass


class StoreFailure(Exception):
    """Raised for any persistence error that is not otherwise classified."""

    pass
