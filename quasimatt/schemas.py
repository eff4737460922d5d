"""
Pydantic schemas for the Ask Quasimatt API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class TextPayload(BaseModel):
    # Left optional so a missing text reaches the store's NOT NULL check.
    text: Optional[str] = None


class QuestionSchema(BaseModel):
    id: int
    text: str
    timestamp: datetime


class ResponseSchema(BaseModel):
    id: int
    question_id: int
    text: str
    timestamp: datetime


class ErrorResponse(BaseModel):
    message: str
