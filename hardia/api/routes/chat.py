"""Chat endpoint: one user message in, one model answer out."""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from hardia.api.middleware import client_ip
from hardia.schemas.chat import ChatResponse, ErrorResponse
from hardia.services.gateway import ChatGateway

router = APIRouter()


def get_gateway(request: Request) -> ChatGateway:
    return request.app.state.gateway


async def read_capped_body(request: Request, max_bytes: int) -> bytes:
    """Read the body, stopping as soon as it grows past ``max_bytes``."""
    chunks = bytearray()
    async for chunk in request.stream():
        chunks.extend(chunk)
        if len(chunks) > max_bytes:
            break
    return bytes(chunks)


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def send_chat_message(
    request: Request,
    gateway: ChatGateway = Depends(get_gateway),
) -> JSONResponse:
    """Send a message to HardIA and receive its compatibility analysis.

    The body is read raw so that the per-client quota applies even to
    payloads that fail validation.
    """
    body = await read_capped_body(request, gateway.max_body_bytes)
    return await gateway.handle(client_ip(request), body)
