"""Pydantic schemas for plan endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from soonish.services.classification import Bucket
from soonish.services.presets import DeadlinePreset, PeriodPreset, TimeModeKind


class TimeModeInput(BaseModel):
    time_type: TimeModeKind
    period_preset: Optional[PeriodPreset] = None
    deadline_preset: Optional[DeadlinePreset] = None
    custom_deadline_date: Optional[datetime] = None


class PlanCreateRequest(TimeModeInput):
    title: str = Field(..., min_length=1, max_length=200)
    memo: Optional[str] = Field(default=None, max_length=2000)


class PlanUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    memo: Optional[str] = Field(default=None, max_length=2000)
    time_mode: Optional[TimeModeInput] = None


class PlanSummary(BaseModel):
    id: UUID
    title: str
    time_type: TimeModeKind
    period_preset: Optional[PeriodPreset]
    period_label: Optional[str]
    deadline_preset: Optional[DeadlinePreset]
    custom_deadline_date: Optional[datetime]
    period_start: Optional[datetime]
    period_end: Optional[datetime]
    deadline: Optional[datetime]
    memo: Optional[str]
    is_completed: bool
    is_archived: bool
    created_at: datetime
    updated_at: datetime
    period_text: Optional[str]
    remaining_text: Optional[str]
    deadline_text: Optional[str]
    deadline_near: bool


class BucketSummary(BaseModel):
    bucket: Bucket
    display_name: str
    plans: List[PlanSummary] = Field(default_factory=list)


class BoardResponse(BaseModel):
    now: datetime
    buckets: List[BucketSummary]
    request_id: str
