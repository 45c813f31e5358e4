"""Chat request gateway.

Takes one inbound chat body through the full pipeline:
  1. Per-client quota check (before anything else, valid payload or not)
  2. Body size cap, JSON decoding and payload validation
  3. Model call through the deadline-bounded runner
  4. Outcome classification into the JSON response envelope

Every response carries the client's ``RateLimit-*`` headers.

Usage:
    gateway = ChatGateway(
        model="gemini-2.0-flash",
        mode=Mode.PRODUCTION,
        limiter=FixedWindowRateLimiter(limit=100),
        runner=BoundedRunner(deadline=15.0),
        session_factory=lambda req, model: ChatSession(req, model),
    )
    response = await gateway.handle(client_ip, await request.body())
"""
from __future__ import annotations

import json
import logging
import traceback
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Protocol

from fastapi.responses import JSONResponse
from pydantic import ValidationError

from hardia.config import Mode
from hardia.exceptions import (
    ChatError,
    ErrorKind,
    InvalidInput,
    PayloadTooLarge,
    RateLimited,
    UpstreamFailure,
)
from hardia.schemas.chat import (
    MIN_MESSAGE_LENGTH,
    ChatData,
    ChatRequest,
    ChatResponse,
    ErrorResponse,
)
from hardia.services.chat import ModelResult
from hardia.services.rate_limiter import FixedWindowRateLimiter, RateLimitDecision
from hardia.services.runner import BoundedRunner

logger = logging.getLogger(__name__)


class ModelSession(Protocol):
    async def send(self, message: str) -> ModelResult: ...


SessionFactory = Callable[[ChatRequest, str], ModelSession]

DEFAULT_MAX_BODY_BYTES = 10 * 1024

STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.PAYLOAD_TOO_LARGE: 413,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.INTERNAL_ERROR: 500,
}

INVALID_MESSAGE = (
    f"Invalid message. Provide a text with a minimum length of "
    f"{MIN_MESSAGE_LENGTH} characters."
)
INVALID_PAYLOAD = (
    "Invalid request body. Send a JSON object with a text 'message' and an "
    "optional 'chatHistory' list of {role, content} turns."
)
PAYLOAD_TOO_LARGE_MESSAGE = "Request body too large."
REJECTED_BY_MODEL = "The request was rejected by the model. Please review your message and try again."
RATE_LIMITED_MESSAGE = "Request limit exceeded. Please try again later."
TIMEOUT_MESSAGE = "Response time exceeded. Please try again."
INTERNAL_ERROR_MESSAGE = "Error processing your request. Please try again."


def classify(exc: BaseException) -> ErrorKind:
    """Map a failure onto the kind that decides the HTTP status."""
    if isinstance(exc, UpstreamFailure):
        return ErrorKind.INVALID_INPUT if exc.invalid_request else ErrorKind.INTERNAL_ERROR
    if isinstance(exc, ChatError) and exc.kind in STATUS_CODES:
        return exc.kind
    return ErrorKind.INTERNAL_ERROR


def _only_message_failed(error: ValidationError) -> bool:
    return all(err["loc"][:1] == ("message",) for err in error.errors())


class ChatGateway:
    """Validates, rate-limits, runs and classifies chat requests.

    The limiter is the only state shared across requests; everything else
    is built per call.
    """

    def __init__(
        self,
        model: str,
        mode: Mode,
        limiter: FixedWindowRateLimiter,
        runner: BoundedRunner,
        session_factory: SessionFactory,
        max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
    ):
        self.model = model
        self.mode = mode
        self.limiter = limiter
        self.runner = runner
        self.session_factory = session_factory
        self.max_body_bytes = max_body_bytes

    async def handle(self, client_key: str, body: bytes) -> JSONResponse:
        """Process one raw chat body and build the HTTP response for it."""
        decision: RateLimitDecision | None = None
        try:
            decision = await self.limiter.check(client_key)
            if not decision.allowed:
                raise RateLimited(retry_after=decision.retry_after)
            chat_request = self.parse(body)
            result = await self._process(chat_request)
        except Exception as exc:
            response = self.error_response(exc)
        else:
            response = JSONResponse(
                status_code=200,
                content=result.model_dump(mode="json", by_alias=True),
            )

        if decision is not None:
            response.headers.update(decision.headers)
        return response

    async def _process(self, chat_request: ChatRequest) -> ChatResponse:
        session = self.session_factory(chat_request, self.model)
        result = await self.runner.run(lambda: session.send(chat_request.message))

        return ChatResponse(
            data=ChatData(
                response=result.text,
                timestamp=datetime.now(timezone.utc),
                model=self.model,
                tokens_used=result.total_tokens if result.total_tokens is not None else "N/A",
            )
        )

    def parse(self, body: bytes) -> ChatRequest:
        """Enforce the size cap, decode JSON and validate."""
        if len(body) > self.max_body_bytes:
            raise PayloadTooLarge(len(body), self.max_body_bytes)
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise InvalidInput(f"Body is not valid JSON: {e}", public_message=INVALID_PAYLOAD) from e
        return self.validate(payload)

    @staticmethod
    def validate(payload: Any) -> ChatRequest:
        """Turn a decoded JSON body into a ChatRequest or raise InvalidInput."""
        if not isinstance(payload, dict):
            raise InvalidInput("Request body must be a JSON object", public_message=INVALID_PAYLOAD)
        try:
            return ChatRequest.model_validate(payload)
        except ValidationError as e:
            public_message = INVALID_MESSAGE if _only_message_failed(e) else INVALID_PAYLOAD
            raise InvalidInput(f"Invalid chat request: {e}", public_message=public_message) from e

    def error_response(self, exc: BaseException) -> JSONResponse:
        """Render a failure as the client-facing error envelope."""
        kind = classify(exc)
        status_code = STATUS_CODES[kind]
        headers = {}
        details = None

        if kind is ErrorKind.INTERNAL_ERROR:
            logger.error(f"Chat request failed: {type(exc).__name__}: {exc}", exc_info=exc)
            message = INTERNAL_ERROR_MESSAGE
            if self.mode is Mode.DEVELOPMENT:
                details = "".join(traceback.format_exception(exc))
        else:
            logger.warning(f"Chat request rejected ({kind.value}): {exc}")
            if kind is ErrorKind.TIMEOUT:
                message = TIMEOUT_MESSAGE
            elif kind is ErrorKind.RATE_LIMITED:
                message = RATE_LIMITED_MESSAGE
                headers["Retry-After"] = str(exc.retry_after)
            elif kind is ErrorKind.PAYLOAD_TOO_LARGE:
                message = PAYLOAD_TOO_LARGE_MESSAGE
            elif isinstance(exc, UpstreamFailure):
                message = REJECTED_BY_MODEL
            else:
                message = getattr(exc, "public_message", None) or INVALID_MESSAGE

        body = ErrorResponse(error=message, details=details)
        return JSONResponse(
            status_code=status_code,
            content=body.model_dump(exclude_none=True),
            headers=headers or None,
        )
