"""Transcript analysis through the LLM, one interview at a time or in batches."""
import asyncio
import hashlib
import json
from pathlib import Path
from typing import Callable

from pydantic import BaseModel, ValidationError

from . import config
from .cache import FileCache
from .client import APIClient, parse_json
from .models import InterviewAnalysis
from .prompts import ANALYSIS_PROMPT, ANALYSIS_SYSTEM_PROMPT

MIN_TRANSCRIPT_LENGTH = 50


class TokenUsage(BaseModel):
    input_tokens: int
    output_tokens: int


class AnalysisResult(BaseModel):
    """Outcome of analyzing one transcript; failures carry a user-facing error."""
    success: bool
    analysis: InterviewAnalysis | None = None
    error: str | None = None
    usage: TokenUsage | None = None


def _error_message(error: Exception) -> str:
    message = str(error)
    if isinstance(error, (json.JSONDecodeError, ValidationError)) or "JSON" in message:
        return "Failed to parse the model response. The output was not valid JSON."
    if "401" in message or "authentication" in message.lower():
        return "Invalid Anthropic API key. Please check your environment variables."
    if "429" in message:
        return "API rate limit exceeded. Please try again in a moment."
    return f"Analysis failed: {message}"


class TranscriptAnalyzer:
    """Turns interview transcripts into structured analyses."""

    def __init__(self, api_client: APIClient, cache_dir: Path | None = None):
        self.api = api_client
        self.cache = None
        if cache_dir is not None:
            self.cache = FileCache(
                cache_dir,
                loader=AnalysisResult.model_validate_json,
                serializer=lambda result: result.model_dump_json(indent=2),
            )

    @staticmethod
    def _cache_key(transcript: str) -> str:
        return hashlib.sha256(transcript.encode("utf-8")).hexdigest()[:24]

    async def analyze_transcript(
        self,
        transcript: str,
        semaphore: asyncio.Semaphore | None = None
    ) -> AnalysisResult:
        """Analyze a single transcript with caching; never raises."""
        if not transcript or len(transcript.strip()) < MIN_TRANSCRIPT_LENGTH:
            return AnalysisResult(
                success=False,
                error="Transcript is too short. Please provide a meaningful interview transcript.",
            )

        key = self._cache_key(transcript)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached:
                return cached

        try:
            completion = await self.api.call(
                ANALYSIS_PROMPT.format(transcript=transcript),
                system=ANALYSIS_SYSTEM_PROMPT,
                semaphore=semaphore,
            )
            data = parse_json(completion.text)
            if not isinstance(data, dict):
                raise ValueError("Model response was not a JSON object")
            # Model output carries ids already; missing ones are minted on validation
            analysis = InterviewAnalysis.model_validate(data)
        except Exception as e:
            return AnalysisResult(success=False, error=_error_message(e))

        result = AnalysisResult(
            success=True,
            analysis=analysis,
            usage=TokenUsage(
                input_tokens=completion.input_tokens,
                output_tokens=completion.output_tokens,
            ),
        )
        if self.cache is not None:
            self.cache.put(key, result)
        return result

    async def analyze_batch(
        self,
        transcripts: list[dict],
        concurrency: int = config.ANALYSIS_CONCURRENCY,
        batch_delay: float = config.ANALYSIS_BATCH_DELAY,
        on_progress: Callable[[str, AnalysisResult], None] | None = None
    ) -> dict[str, AnalysisResult]:
        """Analyze transcripts `concurrency` at a time, pausing between batches.

        Each dict needs `id` and `text`. A failed transcript is reported in
        its own result and does not stop the batch.
        """
        results: dict[str, AnalysisResult] = {}
        total = len(transcripts)
        completed = 0

        async def analyze_with_progress(item: dict) -> None:
            nonlocal completed
            result = await self.analyze_transcript(item["text"])
            results[item["id"]] = result
            completed += 1
            if not result.success:
                print(f"\n  Warning: Failed to process {item['id']}: {result.error}")
            print(f"  Progress: {completed}/{total} interviews", end="\r")
            if on_progress:
                on_progress(item["id"], result)

        for start in range(0, total, concurrency):
            batch = transcripts[start:start + concurrency]
            await asyncio.gather(*[analyze_with_progress(item) for item in batch])
            if start + concurrency < total:
                await asyncio.sleep(batch_delay)

        if total:
            print(f"  Progress: {completed}/{total} interviews")
        return results
