"""Text-completion adapter using the Claude Agent SDK.

Rulers speak, decide and reply through a single contract:

    await completion.complete(system_context, user_text, max_tokens) -> str

The engine treats any failure as an empty reply. ``ClaudeCompletion`` wraps
every call in a timeout and logs errors instead of raising, so a slow or
unavailable service never blocks the scheduler.

The Agent SDK shells out to the Claude Code CLI, which means:
- Authentication uses your existing Claude Code auth
- No separate API key configuration needed
"""

import asyncio
import logging
from typing import Protocol

from claude_agent_sdk import (
    AssistantMessage,
    ClaudeAgentOptions,
    ResultMessage,
    TextBlock,
    query,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


async def generate_text(
    prompt: str,
    system_prompt: str | None = None,
    max_turns: int = 1,
) -> str:
    """Generate text from Claude.

    Args:
        prompt: The user prompt to send to Claude.
        system_prompt: Optional system prompt to set context.
        max_turns: Maximum number of turns (default 1 for single response).

    Returns:
        The generated text response.
    """
    options_kwargs = {"max_turns": max_turns}
    if system_prompt is not None:
        options_kwargs["system_prompt"] = system_prompt
    options = ClaudeAgentOptions(**options_kwargs)

    response_text = ""
    async for message in query(prompt=prompt, options=options):
        if isinstance(message, AssistantMessage):
            for block in message.content:
                if isinstance(block, TextBlock):
                    response_text += block.text
        elif isinstance(message, ResultMessage):
            if message.result:
                response_text = str(message.result)

    return response_text


class TextCompletion(Protocol):
    """Anything that can produce a ruler's words."""

    async def complete(self, system_context: str, user_text: str, max_tokens: int) -> str: ...


class ClaudeCompletion:
    """Timeout-guarded completion backed by ``generate_text``.

    The SDK has no token limit option, so ``max_tokens`` becomes a length
    hint appended to the system context.

    Example:
        >>> completion = ClaudeCompletion(timeout=20)
        >>> reply = await completion.complete(context, "Speak.", 80)
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, max_turns: int = 1):
        self.timeout = timeout
        self.max_turns = max_turns

    async def complete(self, system_context: str, user_text: str, max_tokens: int) -> str:
        system_prompt = f"{system_context}\n\nKeep your answer under {max_tokens} tokens."
        try:
            text = await asyncio.wait_for(
                generate_text(prompt=user_text, system_prompt=system_prompt, max_turns=self.max_turns),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Text completion timed out after {self.timeout}s")
            return ""
        except Exception as e:
            logger.warning(f"Text completion failed: {e}")
            return ""
        return text.strip()


class NullCompletion:
    """Completion that never speaks; rulers fall back to neutral outcomes."""

    async def complete(self, system_context: str, user_text: str, max_tokens: int) -> str:
        return ""


def get_completion(backend: str = "claude", timeout: float = DEFAULT_TIMEOUT) -> TextCompletion:
    """Build the configured completion backend.

    Raises:
        ValueError: If the backend name is unknown
    """
    if backend == "claude":
        return ClaudeCompletion(timeout=timeout)
    if backend == "none":
        return NullCompletion()
    raise ValueError(f"Unknown LLM backend: {backend}")
