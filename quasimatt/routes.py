"""
HTTP routes for the questions and responses API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from quasimatt.db import DbClient, StoreError
from quasimatt.dependencies import get_db_client
from quasimatt.schemas import (
    ErrorResponse,
    QuestionSchema,
    ResponseSchema,
    TextPayload,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _error(status_code: int, exc: StoreError) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": str(exc)})


@router.get(
    "/questions",
    response_model=list[QuestionSchema],
    responses=_ERROR_RESPONSES,
)
def list_questions(db: DbClient = Depends(get_db_client)):
    """
    All questions, most recent first.
    """
    try:
        questions = db.list_questions()
    except StoreError as exc:
        logger.exception("Listing questions failed")
        return _error(500, exc)
    return [q.as_dict() for q in questions]


@router.post(
    "/questions",
    response_model=QuestionSchema,
    status_code=201,
    responses=_ERROR_RESPONSES,
)
def create_question(payload: TextPayload, db: DbClient = Depends(get_db_client)):
    try:
        question = db.create_question(payload.text)
    except StoreError as exc:
        logger.warning("Rejected question: %s", exc)
        return _error(400, exc)
    logger.info("Created question %d", question.id)
    return question.as_dict()


@router.get(
    "/questions/{question_id}/responses",
    response_model=list[ResponseSchema],
    responses=_ERROR_RESPONSES,
)
def list_responses(question_id: int, db: DbClient = Depends(get_db_client)):
    """
    Responses for one question, oldest first. An unknown question id yields
    an empty list.
    """
    try:
        responses = db.list_responses(question_id)
    except StoreError as exc:
        logger.exception("Listing responses for question %d failed", question_id)
        return _error(500, exc)
    return [r.as_dict() for r in responses]


@router.post(
    "/questions/{question_id}/responses",
    response_model=ResponseSchema,
    status_code=201,
    responses=_ERROR_RESPONSES,
)
def create_response(
    question_id: int,
    payload: TextPayload,
    db: DbClient = Depends(get_db_client),
):
    try:
        response = db.create_response(question_id, payload.text)
    except StoreError as exc:
        logger.warning("Rejected response to question %d: %s", question_id, exc)
        return _error(400, exc)
    logger.info("Created response %d for question %d", response.id, question_id)
    return response.as_dict()
