"""Text generation backends for Aethereal Drift."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import random
from typing import Protocol

from aethereal_drift.errors import GenerationError
from aethereal_drift.models import DriftConfig, GenerationParams

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    """Protocol for text generation backends."""

    async def generate(self, prompt: str, params: GenerationParams) -> str:
        """Generate a single completion for prompt."""
        ...


class OpenAIGenerator:
    """OpenAI chat completions backend."""

    def __init__(self, model: str = "gpt-4o-mini"):
        from openai import AsyncOpenAI

        self.model = model
        self.client = AsyncOpenAI()

    async def generate(self, prompt: str, params: GenerationParams) -> str:
        """Generate a single completion for prompt."""
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=params.temperature,
            max_tokens=params.max_tokens,
            top_p=params.top_p,
            frequency_penalty=params.repetition_penalty - 1,
        )
        return response.choices[0].message.content or ""


class LocalGenerator:
    """On-device generation using a Hugging Face transformers pipeline."""

    def __init__(self, model_name: str = "HuggingFaceTB/SmolLM-360M-Instruct"):
        from transformers import pipeline

        self.model_name = model_name
        self.pipe = pipeline("text-generation", model=model_name)

    def _generate_sync(self, prompt: str, params: GenerationParams) -> str:
        result = self.pipe(
            prompt,
            max_new_tokens=params.max_tokens,
            temperature=params.temperature,
            top_p=params.top_p,
            repetition_penalty=params.repetition_penalty,
            do_sample=True,
            return_full_text=False,
        )
        if result and isinstance(result[0], dict):
            return str(result[0].get("generated_text", ""))
        return ""

    async def generate(self, prompt: str, params: GenerationParams) -> str:
        """Generate a single completion for prompt.

        The pipeline is blocking, so it runs in a worker thread.
        """
        return await asyncio.to_thread(self._generate_sync, prompt, params)


class EchoGenerator:
    """Deterministic, dependency-free generator.

    Intended for tests and offline runs where no model is available.
    Output depends only on the prompt text.
    """

    _SUBJECTS = (
        "A stairwell",
        "The ticket office",
        "A row of lamps",
        "Someone's coat",
        "The river",
        "A survey marker",
    )
    _EVENTS = (
        "descends one floor further than the building has",
        "sells passage to a street that was paved over",
        "flickers in a sequence that spells a forgotten postcode",
        "hangs on a hook that is not attached to anything",
        "runs briefly uphill at this spot",
        "reads a height no instrument agrees with",
    )

    def __init__(self, sentences: int = 2):
        self.sentences = sentences

    def _rng_for_text(self, text: str) -> random.Random:
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        seed = int.from_bytes(digest[:8], "big", signed=False)
        return random.Random(seed)

    async def generate(self, prompt: str, params: GenerationParams) -> str:
        rng = self._rng_for_text(prompt)
        return " ".join(
            f"{rng.choice(self._SUBJECTS)} {rng.choice(self._EVENTS)}."
            for _ in range(self.sentences)
        )


def create_generator(config: DriftConfig) -> TextGenerator:
    """Build the text generator named by config.text_backend."""
    backend = config.text_backend
    logger.info("Using %s text generation backend", backend)
    if backend == "openai":
        return OpenAIGenerator(model=config.openai_model)
    if backend == "echo":
        return EchoGenerator()
    if backend == "local":
        return LocalGenerator(model_name=config.local_model)
    raise ValueError(f"Unknown text backend: {backend}")


async def run_generator(
    generator: TextGenerator,
    prompt: str,
    params: GenerationParams,
) -> str:
    """Call a generator, surfacing any failure as GenerationError."""
    try:
        text = await generator.generate(prompt, params)
    except GenerationError:
        raise
    except Exception as exc:
        logger.error("Text generation failed: %s", exc)
        raise GenerationError(f"Text generation failed: {exc}") from exc

    if not text or not text.strip():
        raise GenerationError("Text generator returned no text")
    return text
