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
from typing import Protocol

# Open-ended expiry for the currently valid version of a row.
SENTINEL_END_DATE = date(2099, 12, 31)


class Clock(Protocol):
    def today(self) -> date: ...


class SystemClock:
    def today(self) -> date:
        return date.today()


class FixedClock:
    """Clock pinned to a given day. Useful for deterministic tests and backfills."""

    def __init__(self, day: date):
        self.day = day

    def today(self) -> date:
        return self.day
