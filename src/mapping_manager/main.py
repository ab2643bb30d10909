# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/omop_atlas_backend

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Response, status

from mapping_manager.api import concepts
from mapping_manager.utils.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Starting mapping-manager...")
    yield
    logger.info("Shutting down mapping-manager...")


app = FastAPI(
    title="Mapping Manager",
    description="Versioned registry of local concepts mapped to the OMOP standard vocabulary",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(concepts.router)


@app.get("/heartbeat")
def heartbeat() -> Response:
    return Response(status_code=status.HTTP_200_OK)
