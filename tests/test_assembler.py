"""Tests for transmission assembly."""

import random
from datetime import datetime, timezone

import pytest
from aethereal_drift import GenerationError, TransmissionStyle
from aethereal_drift.assembler import TransmissionAssembler
from aethereal_drift.generation import EchoGenerator
from aethereal_drift.phantom import synthesize

from conftest import CannedGenerator, FailingGenerator, make_anchors

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def fixed_clock():
    return FIXED_NOW


@pytest.mark.asyncio
async def test_assemble_builds_transmission(observer, london_anchors):
    generator = CannedGenerator('"The lamps count backwards here"')
    assembler = TransmissionAssembler(generator, rng=random.Random(42), clock=fixed_clock)

    transmission, phantom = await assembler.assemble(
        observer, london_anchors, style=TransmissionStyle.SIGNAL, voice_label="Daniel"
    )

    assert transmission.text == "The lamps count backwards here."
    assert transmission.style is TransmissionStyle.SIGNAL
    assert transmission.voice_label == "Daniel"
    assert transmission.timestamp == "2026-03-01T12:00:00+00:00"
    assert transmission.observer == (51.5074, -0.1278)
    assert transmission.phantom == (phantom.latitude, phantom.longitude)
    assert transmission.anchor_titles == ("A", "B")
    assert transmission.id is None

    prompt = generator.prompts[0]
    assert '"A"' in prompt and '"B"' in prompt
    assert "Intercepted radio transmission" in prompt


@pytest.mark.asyncio
async def test_assemble_is_reproducible_with_seed(observer, london_anchors):
    results = []
    for _ in range(2):
        assembler = TransmissionAssembler(
            EchoGenerator(), rng=random.Random(99), clock=fixed_clock
        )
        results.append(await assembler.assemble(observer, london_anchors))

    assert results[0] == results[1]


@pytest.mark.asyncio
async def test_assemble_sorts_anchors_by_distance(observer):
    anchors = list(reversed(make_anchors([1, 2, 3, 4, 5, 6])))
    assembler = TransmissionAssembler(CannedGenerator(), rng=random.Random(1))

    transmission, _ = await assembler.assemble(observer, anchors)

    assert transmission.anchor_titles == tuple(f"Place {i}" for i in range(1, 6))


@pytest.mark.asyncio
async def test_assemble_uses_synthesizer_with_shared_rng(observer, london_anchors):
    assembler = TransmissionAssembler(
        CannedGenerator(), rng=random.Random(5), clock=fixed_clock
    )
    _, phantom = await assembler.assemble(
        observer, london_anchors, style=TransmissionStyle.FRAGMENT
    )

    assert phantom == synthesize(observer, london_anchors, random.Random(5))


@pytest.mark.asyncio
async def test_assemble_without_anchors(observer):
    generator = CannedGenerator("Nothing is recorded here")
    assembler = TransmissionAssembler(generator, rng=random.Random(2))

    transmission, phantom = await assembler.assemble(observer, [])

    assert transmission.anchor_titles == ()
    assert phantom.anchor_titles == ()
    assert "undocumented space" in generator.prompts[0]


@pytest.mark.asyncio
async def test_generator_failure_propagates(observer, london_anchors):
    generator = FailingGenerator(TimeoutError("took too long"))
    assembler = TransmissionAssembler(generator)

    with pytest.raises(GenerationError) as excinfo:
        await assembler.assemble(observer, london_anchors)

    assert isinstance(excinfo.value.__cause__, TimeoutError)
    assert generator.calls == 1


@pytest.mark.asyncio
async def test_empty_generator_output_is_a_failure(observer):
    assembler = TransmissionAssembler(CannedGenerator("   "))

    with pytest.raises(GenerationError):
        await assembler.assemble(observer, [])


@pytest.mark.asyncio
async def test_generation_params_passed_through(observer):
    generator = CannedGenerator()
    assembler = TransmissionAssembler(generator)

    await assembler.assemble(observer, [])

    params = generator.params[0]
    assert params.temperature == 0.9
    assert params.max_tokens == 150
    assert params.top_p == 0.95
    assert params.repetition_penalty == 1.1
