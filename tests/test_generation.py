"""Tests for text generation backends."""

import pytest
from aethereal_drift import DriftConfig, GenerationError, GenerationParams
from aethereal_drift.generation import EchoGenerator, create_generator, run_generator

from conftest import FailingGenerator


@pytest.mark.asyncio
async def test_echo_generator_is_deterministic():
    generator = EchoGenerator()
    params = GenerationParams()

    first = await generator.generate("prompt one", params)
    second = await generator.generate("prompt one", params)

    assert first == second
    assert first.endswith(".")


def test_create_generator_echo():
    config = DriftConfig(db_path=":memory:", text_backend="echo")
    assert isinstance(create_generator(config), EchoGenerator)


def test_create_generator_unknown_backend():
    config = DriftConfig(db_path=":memory:", text_backend="telepathy")
    with pytest.raises(ValueError):
        create_generator(config)


@pytest.mark.asyncio
async def test_run_generator_wraps_errors():
    with pytest.raises(GenerationError) as excinfo:
        await run_generator(FailingGenerator(), "prompt", GenerationParams())

    assert isinstance(excinfo.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_run_generator_passes_generation_errors_through():
    original = GenerationError("model not loaded")

    with pytest.raises(GenerationError) as excinfo:
        await run_generator(FailingGenerator(original), "prompt", GenerationParams())

    assert excinfo.value is original
