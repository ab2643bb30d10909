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
Application logger.
Logs to stderr and to a rotating JSON file under ``logs/``.
"""

import os
import sys
from pathlib import Path

from loguru import logger

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

log_path = Path("logs")
if not log_path.exists():
    log_path.mkdir(parents=True, exist_ok=True)

logger.remove()
logger.add(
    sys.stderr,
    level=LOG_LEVEL,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{function} - {message}",
)
logger.add(
    "logs/mapping_manager.log",
    level=LOG_LEVEL,
    rotation="10 MB",
    retention="7 days",
    serialize=True,
    enqueue=True,
)

__all__ = ["logger"]
