# Version: v1.0
"""
scribe.llm — Single-prompt calls to the Ollama /api/chat endpoint.

Every failure (transport, HTTP status, malformed or empty reply) is raised as
TransformError so callers have one exception type to recover from.
"""

from typing import Awaitable, Callable, Optional

import httpx

from scribe.config import (
    logger,
    DEFAULT_LLM_MODEL,
    DEFAULT_LLM_TIMEOUT,
    DEFAULT_OLLAMA_URL,
    MAX_TOKENS_TRANSCRIPTION,
)
from scribe.errors import TransformError

# An async callable taking the filled prompt and returning the model output
Transform = Callable[[str], Awaitable[str]]


async def transform(
    prompt_text: str,
    *,
    model: str = "",
    max_tokens: int = MAX_TOKENS_TRANSCRIPTION,
    temperature: float = 0.1,
    timeout: Optional[float] = None,
) -> str:
    """Send *prompt_text* as one user message and return the reply text.

    Args:
        prompt_text: Fully filled prompt.
        model: Ollama model override; defaults to DEFAULT_LLM_MODEL.
        max_tokens: Output budget (Ollama ``num_predict``).
        temperature: Sampling temperature.
        timeout: Request timeout in seconds; defaults to DEFAULT_LLM_TIMEOUT.

    Returns:
        The assistant message content, stripped.

    Raises:
        TransformError: On any transport, HTTP or response-shape failure.
    """
    llm_model = model.strip() if model and model.strip() else DEFAULT_LLM_MODEL
    payload = {
        "model": llm_model,
        "messages": [{"role": "user", "content": prompt_text}],
        "stream": False,
        "options": {"temperature": temperature, "num_predict": max_tokens},
    }

    try:
        async with httpx.AsyncClient(timeout=timeout or DEFAULT_LLM_TIMEOUT) as http_client:
            response = await http_client.post(f"{DEFAULT_OLLAMA_URL}/api/chat", json=payload)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPStatusError as e:
        raise TransformError(
            f"Ollama HTTP error {e.response.status_code}: {e.response.text[:200]}", e
        ) from e
    except Exception as e:
        raise TransformError(f"Ollama request failed: {e}", e) from e

    try:
        answer: str = data["message"]["content"].strip()
    except (KeyError, TypeError, AttributeError) as e:
        raise TransformError(f"Unexpected Ollama response: {str(data)[:200]}", e) from e
    if not answer:
        raise TransformError("Ollama returned an empty response")

    logger.info(
        f"LLM transform via {llm_model}: {len(prompt_text)} chars in, "
        f"{len(answer)} chars out"
    )
    return answer


def make_transform(**options) -> Transform:
    """Bind *options* (model, max_tokens, ...) into a one-argument Transform."""

    async def _bound(prompt_text: str) -> str:
        return await transform(prompt_text, **options)

    return _bound
