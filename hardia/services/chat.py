"""Chat session against the Gemini model.

Turns a validated chat request into one model call: the system instruction
embeds the user's message, prior turns are replayed in order, and the
provider's failures are re-raised with a typed kind.
"""
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from hardia.config import Settings
from hardia.exceptions import UpstreamFailure
from hardia.schemas.chat import ChatRequest
from hardia.services.llm_provider import get_chat_llm

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"


def load_system_prompt() -> str:
    """Load the system instruction template."""
    prompt_path = PROMPTS_DIR / "system_instruction.txt"
    return prompt_path.read_text(encoding="utf-8")


@dataclass(frozen=True)
class ModelResult:
    """Raw outcome of a single model call."""

    text: str
    total_tokens: int | None = None


def _extract_text(content) -> str | None:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)
    return None


def _is_invalid_request(exc: BaseException) -> bool:
    """Whether the provider rejected the call as a bad request (HTTP 400)."""
    seen = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        for attr in ("code", "status_code"):
            value = getattr(current, attr, None)
            if isinstance(value, int) and value == 400:
                return True
        current = current.__cause__
    return False


class ChatSession:
    """One request's conversation with the model.

    Nothing is shared between sessions: the model client, generation config
    and message list are built per instance.
    """

    def __init__(
        self,
        chat_request: ChatRequest,
        model: str,
        settings: Settings | None = None,
        llm: BaseChatModel | None = None,
    ):
        self.request = chat_request
        self.model = model
        self.settings = settings
        self.prompt_template = load_system_prompt()
        self._llm = llm

    def _build_messages(self, message: str) -> list[BaseMessage]:
        """System instruction, then history in chronological order, then the new message."""
        system = SystemMessage(
            content=self.prompt_template.format(message=self.request.message)
        )

        history: list[BaseMessage] = []
        for turn in self.request.chat_history:
            if turn.role == "user":
                history.append(HumanMessage(content=turn.content))
            else:
                history.append(AIMessage(content=turn.content))

        return [system, *history, HumanMessage(content=message)]

    async def send(self, message: str) -> ModelResult:
        """Send ``message`` to the model and return its raw answer.

        Cancelling the awaiting task aborts the in-flight HTTP call.
        """
        llm = self._llm or get_chat_llm(model=self.model, settings=self.settings)
        messages = self._build_messages(message)

        try:
            response = await llm.ainvoke(messages)
        except asyncio.CancelledError:
            logger.info(f"Gemini call cancelled: model={self.model}")
            raise
        except Exception as e:
            raise UpstreamFailure(
                f"Gemini call failed: {e}",
                invalid_request=_is_invalid_request(e),
            ) from e

        text = _extract_text(getattr(response, "content", None))
        if not text:
            raise UpstreamFailure("Invalid API response")

        usage = getattr(response, "usage_metadata", None) or {}
        total_tokens = usage.get("total_tokens")

        return ModelResult(text=text, total_tokens=total_tokens)
