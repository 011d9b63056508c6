"""API router for raw audio and text submissions.

Both endpoints only queue the payload and answer 202; the pipeline
processes it later. Text is wrapped with the text sentinel so it shares
the queue with audio.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from voice_gateway.core.interfaces import QueueFullError, SourceClosedError
from voice_gateway.core.models import encode_text_command
from voice_gateway.models import ReceivedResponse
from voice_gateway.routers.dependencies import (
    PayloadTooLargeError,
    enforce_rate_limit,
    get_http_source,
    read_body_limited,
)
from voice_gateway.services.http_source import MAX_AUDIO_BYTES, MAX_TEXT_BYTES, HTTPSource

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(enforce_rate_limit)])


def _enqueue(source: HTTPSource, payload: bytes) -> None:
    try:
        source.submit(payload)
    except QueueFullError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="queue full, try again",
        )
    except SourceClosedError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="shutting down",
        )


@router.post(
    "/audio",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ReceivedResponse,
    response_model_exclude_none=True,
)
async def submit_audio(
    request: Request,
    source: HTTPSource = Depends(get_http_source),
) -> ReceivedResponse:
    """Queue raw audio for transcription.

    Args:
        request: Request whose body is the audio file (max 10 MiB)
        source: HTTP source owning the queue

    Returns:
        Receipt with the number of bytes queued

    Raises:
        HTTPException: 400 empty body, 413 too large, 503 queue full
    """
    try:
        data = await read_body_limited(request, MAX_AUDIO_BYTES)
    except PayloadTooLargeError as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))

    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="empty audio")

    _enqueue(source, data)
    logger.info(f"Received audio via HTTP: {len(data)} bytes")
    return ReceivedResponse(bytes=len(data))


@router.post(
    "/text",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ReceivedResponse,
    response_model_exclude_none=True,
)
async def submit_text(
    request: Request,
    source: HTTPSource = Depends(get_http_source),
) -> ReceivedResponse:
    """Queue an already-typed command, skipping transcription.

    Args:
        request: Request whose body is UTF-8 text (max 1 KiB)
        source: HTTP source owning the queue

    Returns:
        Receipt echoing the queued text

    Raises:
        HTTPException: 400 empty body, 413 too large, 503 queue full
    """
    try:
        data = await read_body_limited(request, MAX_TEXT_BYTES)
    except PayloadTooLargeError as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))

    text = data.decode("utf-8", errors="replace")
    if not text.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="empty text")

    _enqueue(source, encode_text_command(text))
    logger.info(f"Received text command via HTTP: {text}")
    return ReceivedResponse(text=text)
