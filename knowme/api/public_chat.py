"""Public visitor endpoint: ``POST /api/v1/public-chat``.

One URL serves both visitor actions, selected by the ``action`` tag:

- ``validate`` -- check the share token and count one view.  Answers
  ``200 {"valid": true, "space": {...}}`` or
  ``403 {"valid": false, "message": ...}``.
- ``chat`` -- re-check the token (without counting a view) and stream
  the answer as ``text/event-stream``.

Failures that happen before the first byte are JSON bodies of the form
``{"error": "<readable message>"}`` with the error's HTTP status; the
same shape appears as an in-stream event once streaming has begun.
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import TypeAdapter, ValidationError

from knowme.api.schemas import (
    ChatAction,
    PublicChatRequest,
    SpaceSummary,
    ValidateAction,
    ValidateResponse,
)
from knowme.services.chat import ChatService
from knowme.services.link_validator import LinkValidator
from knowme.utils.errors import KnowMeError

logger: structlog.BoundLogger = structlog.get_logger(logger_name=__name__)

router = APIRouter(prefix="/api/v1")

_request_adapter: TypeAdapter[ValidateAction | ChatAction] = TypeAdapter(PublicChatRequest)

SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


def _get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def _get_link_validator(request: Request) -> LinkValidator:
    return request.app.state.link_validator


ChatServiceDep = Annotated[ChatService, Depends(_get_chat_service)]
LinkValidatorDep = Annotated[LinkValidator, Depends(_get_link_validator)]


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/public-chat", response_model=None)
async def public_chat(
    request: Request,
    validator: LinkValidatorDep,
    chat_service: ChatServiceDep,
) -> JSONResponse | StreamingResponse:
    try:
        body = _request_adapter.validate_json(await request.body())
    except ValidationError as exc:
        logger.info("public_chat_bad_request", errors=exc.error_count())
        return _error(400, "Invalid request")

    if isinstance(body, ValidateAction):
        return await _validate(body, validator)
    return await _chat(body, validator, chat_service)


async def _validate(body: ValidateAction, validator: LinkValidator) -> JSONResponse:
    result = await validator.validate(body.token, record_view=True)
    if not result.is_valid or result.space is None:
        response = ValidateResponse(valid=False, message=result.message)
        return JSONResponse(status_code=403, content=response.model_dump(exclude_none=True))

    response = ValidateResponse(
        valid=True,
        space=SpaceSummary(name=result.space.name, description=result.space.description),
    )
    return JSONResponse(status_code=200, content=response.model_dump(exclude_none=True))


async def _chat(
    body: ChatAction,
    validator: LinkValidator,
    chat_service: ChatService,
) -> JSONResponse | StreamingResponse:
    result = await validator.validate(body.token, record_view=False)
    if not result.is_valid or result.space is None:
        return _error(403, result.message or "")

    space = result.space
    with structlog.contextvars.bound_contextvars(space_id=space.id, token=body.token):
        try:
            stream = await chat_service.respond(space, body.message, body.history)
        except KnowMeError as exc:
            logger.warning(
                "public_chat_failed",
                error_type=type(exc).__name__,
                error=str(exc),
                status=exc.http_status,
            )
            return _error(exc.http_status, exc.message)

    return StreamingResponse(stream, media_type="text/event-stream", headers=SSE_HEADERS)
