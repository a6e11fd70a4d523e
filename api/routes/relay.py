"""Chat relay routes for the mobile client."""

import logging

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import PlainTextResponse

from core.rate_limit import RateLimited, get_client_ip, get_rate_limit_key
from schemas.common import ErrorResponse
from schemas.relay import RelayResponse
from services.relay_service import read_limited_body, relay_service

router = APIRouter()
logger = logging.getLogger(__name__)


def wants_plain_text(request: Request) -> bool:
    """True when the client asks for text/plain and not JSON."""
    accept = request.headers.get("accept", "").lower()
    return "text/plain" in accept and "application/json" not in accept


@router.options("/proxy", include_in_schema=False)
async def proxy_preflight() -> Response:
    """Answer bare OPTIONS requests that the CORS middleware does not handle."""
    return Response(status_code=status.HTTP_200_OK)


@router.post(
    "/proxy",
    response_model=RelayResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def proxy_chat(request: Request, _: RateLimited = None) -> RelayResponse | Response:
    """
    Relay a chat request to the upstream model.

    Accepts JSON or form-encoded bodies with:
    - `messages`: JSON-encoded list of messages (legacy `message`/`image`
      entries are converted to vision content)
    - `hash`: MD5 of `messages` + expected secret
    - `shared_secret`: the base secret, or `<secret>_<timestamp>`
    - `timestamp`: Unix seconds, required for timestamped secrets

    The auth fields may also be sent as `x-hash`, `x-shared-secret` and
    `x-timestamp` headers.
    """
    client_ip = get_client_ip(request)
    content_type = request.headers.get("content-type", "")

    body = await read_limited_body(request)
    fields = relay_service.extract_fields(content_type, body, request.headers)
    logger.info(
        f"Relay request from IP: {client_ip} "
        f"(messages: {len(fields.messages)} chars, timestamp: {bool(fields.timestamp)})"
    )

    response = await relay_service.relay(
        fields, client_ip=client_ip, rate_limit_key=get_rate_limit_key(request)
    )

    if wants_plain_text(request):
        return PlainTextResponse(response.choices[0].message.content)
    return response
