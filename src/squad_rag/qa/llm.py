"""Chat model used to phrase answers from retrieved SQuAD passages.

``LLM_BASE_URL`` points the client at any OpenAI-compatible server
(vLLM, Ollama, a proxy); otherwise the OpenAI API is used and
``OPENAI_API_KEY`` must be set.
"""

from __future__ import annotations

import logging

from langchain_openai import ChatOpenAI

from squad_rag.config import Settings, settings
from squad_rag.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Placeholder accepted by self-hosted servers that ignore auth.
_NO_KEY = "EMPTY"


def get_llm(temperature: float = 0.0, *, config: Settings = settings) -> ChatOpenAI:
    """Build the answer model from *config*.

    Raises
    ------
    ConfigurationError
        If neither ``OPENAI_API_KEY`` nor ``LLM_BASE_URL`` is set.
    """
    if not (config.openai_api_key or config.llm_base_url):
        raise ConfigurationError("Set OPENAI_API_KEY, or LLM_BASE_URL for a self-hosted model")

    endpoint = config.llm_base_url or None
    logger.info("Answer model %s via %s", config.llm_model_name, endpoint or "OpenAI")
    return ChatOpenAI(
        model=config.llm_model_name,
        temperature=temperature,
        api_key=config.openai_api_key or _NO_KEY,
        base_url=endpoint,
        timeout=config.llm_request_timeout,
    )
