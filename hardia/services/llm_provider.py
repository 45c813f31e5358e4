"""Gemini chat model factory.

Generation parameters and the safety policy are fixed for every request;
only the model name and the output token cap come from configuration.
"""
import logging

from langchain_core.language_models import BaseChatModel
from langchain_google_genai import (
    ChatGoogleGenerativeAI,
    HarmBlockThreshold,
    HarmCategory,
)

from hardia.config import Settings, get_settings

logger = logging.getLogger(__name__)

TEMPERATURE = 0.7
TOP_P = 0.9
TOP_K = 40

SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
}


def get_chat_llm(
    model: str | None = None,
    max_output_tokens: int | None = None,
    settings: Settings | None = None,
) -> BaseChatModel:
    """Build a fresh Gemini chat model for a single request.

    Args:
        model: Model name. If None, uses GEMINI_MODEL from settings.
        max_output_tokens: Output cap. If None, uses MAX_TOKENS from settings.
        settings: Settings to read from. If None, uses the cached process settings.

    Returns:
        BaseChatModel instance with retries disabled; a failed call is
        reported to the caller instead of being re-sent.
    """
    settings = settings or get_settings()
    model = model or settings.gemini_model
    max_output_tokens = max_output_tokens or settings.max_tokens

    logger.debug(f"Creating LLM: model={model}, max_output_tokens={max_output_tokens}")

    return ChatGoogleGenerativeAI(
        model=model,
        google_api_key=settings.google_gemini_api_key,
        temperature=TEMPERATURE,
        top_p=TOP_P,
        top_k=TOP_K,
        max_output_tokens=max_output_tokens,
        safety_settings=dict(SAFETY_SETTINGS),
        max_retries=0,
    )
