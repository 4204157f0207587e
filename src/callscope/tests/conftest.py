"""Shared fixtures: an in-memory exporter and tracers around it."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from callscope.foundation.config import clear_settings_cache
from callscope.runtime.observability import InMemoryExporter, NeverSample, Tracer


@pytest.fixture
def exporter() -> InMemoryExporter:
    return InMemoryExporter()


@pytest.fixture
def tracer(exporter: InMemoryExporter) -> Tracer:
    """Always-sampling tracer exporting to memory."""
    return Tracer(service_name="test", exporter=exporter)


@pytest.fixture
def unsampled_tracer(exporter: InMemoryExporter) -> Tracer:
    return Tracer(service_name="test", exporter=exporter, sampler=NeverSample())


@pytest.fixture(autouse=True)
def clean_settings() -> Iterator[None]:
    """Reset cached settings around each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_global_tracer() -> Iterator[None]:
    """Keep a globally configured tracer from leaking into later tests."""
    from callscope.runtime.observability.tracing import tracer as tracer_module

    token = tracer_module._tracer.set(None)
    yield
    tracer_module._tracer.reset(token)
