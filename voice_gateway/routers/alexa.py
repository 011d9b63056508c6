"""API router for the Alexa custom-skill webhook.

Every response, including rejections, is a 200 with a speakable Alexa
envelope: Alexa reads the text to the user instead of failing the skill.
Session lifecycle events and the built-in help/stop/cancel intents are
answered here and never reach the command queue.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from voice_gateway.core.models import encode_text_command
from voice_gateway.models import AlexaRequest, alexa_response
from voice_gateway.routers.dependencies import (
    PayloadTooLargeError,
    get_http_source,
    is_rate_limited,
    read_body_limited,
)
from voice_gateway.security import extract_token, verify_shared_secret
from voice_gateway.services.http_source import MAX_ALEXA_BYTES, HTTPSource

logger = logging.getLogger(__name__)
router = APIRouter()

MSG_UNAUTHORIZED = "No autorizado"
MSG_RATE_LIMITED = "Demasiados pedidos, probá en un momento"
MSG_READ_ERROR = "Error al leer la solicitud"
MSG_PARSE_ERROR = "No pude entender la solicitud"
MSG_LAUNCH = "Hola, decime qué querés hacer"
MSG_GOODBYE = "Chau"
MSG_UNKNOWN_REQUEST = "No entendí el pedido"
MSG_HELP = "Podés decirme cosas como: encendé la luz de la cocina, o activá la escena película"
MSG_MISSING_COMMAND = "No entendí el comando, probá de nuevo"
MSG_BUSY = "Estoy ocupado, probá en un momento"

HELP_INTENT = "AMAZON.HelpIntent"
END_INTENTS = ("AMAZON.StopIntent", "AMAZON.CancelIntent")


@router.post("/alexa")
async def alexa(
    request: Request,
    source: HTTPSource = Depends(get_http_source),
) -> dict[str, Any]:
    """Handle an Alexa skill request.

    Flow:
    1. Rate limit the caller
    2. Verify the shared secret (header or ``token`` query parameter)
    3. Parse the request envelope
    4. Answer lifecycle and built-in intents directly
    5. Queue the ``command`` slot as text

    Args:
        request: Alexa request
        source: HTTP source owning the queue

    Returns:
        Alexa response envelope
    """
    if is_rate_limited(request, source):
        return alexa_response(MSG_RATE_LIMITED, True)

    if not verify_shared_secret(extract_token(request), source.auth_token):
        client = request.client.host if request.client else "unknown"
        logger.warning(f"Unauthorized alexa request from {client}")
        return alexa_response(MSG_UNAUTHORIZED, True)

    try:
        body = await read_body_limited(request, MAX_ALEXA_BYTES)
    except PayloadTooLargeError as e:
        logger.error(f"Reading alexa request failed: {e}")
        return alexa_response(MSG_READ_ERROR, True)

    try:
        alexa_request = AlexaRequest.model_validate(json.loads(body))
    except (ValueError, ValidationError) as e:
        logger.error(f"Parsing alexa request failed: {e}")
        return alexa_response(MSG_PARSE_ERROR, True)

    request_type = alexa_request.request.type
    intent_name = alexa_request.request.intent.name
    logger.info(f"Received alexa request: type={request_type}, intent={intent_name}")

    if request_type == "LaunchRequest":
        return alexa_response(MSG_LAUNCH, False)

    if request_type == "SessionEndedRequest":
        return alexa_response(MSG_GOODBYE, True)

    if request_type != "IntentRequest":
        return alexa_response(MSG_UNKNOWN_REQUEST, True)

    if intent_name == HELP_INTENT:
        return alexa_response(MSG_HELP, False)

    if intent_name in END_INTENTS:
        return alexa_response(MSG_GOODBYE, True)

    text = alexa_request.command_text()
    if text is None:
        return alexa_response(MSG_MISSING_COMMAND, False)

    if not source.try_submit(encode_text_command(text)):
        return alexa_response(MSG_BUSY, True)

    logger.info(f"Received command from Alexa: {text}")
    return alexa_response(f"Ejecutando: {text}", True)
