"""Anthropic API client abstraction."""
import asyncio
import contextlib
import json
import re
from typing import Any

from anthropic import APIError, AsyncAnthropic, AuthenticationError
from pydantic import BaseModel

from . import config

_CODE_FENCE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)


class Completion(BaseModel):
    """Text of a model response plus token usage."""
    text: str
    input_tokens: int = 0
    output_tokens: int = 0


class APIClient:
    """Wrapper around Anthropic API with retry and timeout handling."""

    def __init__(
        self,
        model: str = config.ANALYSIS_MODEL,
        max_retries: int = 3,
        api_key: str | None = None
    ):
        api_key = api_key or config.ANTHROPIC_API_KEY
        if not api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable is required")
        self.client = AsyncAnthropic(api_key=api_key)
        self.model = model
        self.max_retries = max_retries

    async def call(
        self,
        prompt: str,
        system: str | None = None,
        max_tokens: int = config.ANALYSIS_MAX_TOKENS,
        temperature: float = config.ANALYSIS_TEMPERATURE,
        timeout: float = 120.0,
        semaphore: asyncio.Semaphore | None = None
    ) -> Completion:
        """Call the API with automatic retry and timeout handling."""
        request = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system

        for attempt in range(self.max_retries):
            try:
                async with semaphore or contextlib.nullcontext():
                    response = await asyncio.wait_for(
                        self.client.messages.create(**request),
                        timeout=timeout
                    )

                block = response.content[0]
                if block.type != "text":
                    raise ValueError("Unexpected response type from the model")
                return Completion(
                    text=block.text.strip(),
                    input_tokens=response.usage.input_tokens,
                    output_tokens=response.usage.output_tokens,
                )

            except AuthenticationError:
                raise
            except (asyncio.TimeoutError, APIError):
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(2 ** attempt)
                    continue
                raise


def parse_json(content: str) -> Any:
    """Parse JSON from an LLM response, tolerating code fences and trailing prose."""
    content = content.strip()

    fenced = _CODE_FENCE.search(content)
    if fenced:
        content = fenced.group(1).strip()

    try:
        return json.loads(content)
    except json.JSONDecodeError:
        pass

    # Take the first complete object or array and ignore whatever follows it
    decoder = json.JSONDecoder()
    for start, char in enumerate(content):
        if char not in "{[":
            continue
        try:
            value, _ = decoder.raw_decode(content, start)
            return value
        except json.JSONDecodeError:
            continue

    raise json.JSONDecodeError(
        f"Could not parse JSON. Last 500 chars: {content[-500:]}",
        content,
        max(len(content) - 1, 0)
    )
