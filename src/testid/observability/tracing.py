"""OpenTelemetry spans for extraction and identity assignment.

A host that already installed a tracer provider keeps it; otherwise
`init_tracing` installs an SDK provider tagged with the engine name so
spans exist in-process even without an exporter.
"""

from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider


ENGINE_NAME = "testid"


@lru_cache()
def init_tracing(service_name: str = ENGINE_NAME) -> None:
    if isinstance(trace.get_tracer_provider(), TracerProvider):
        return
    trace.set_tracer_provider(
        TracerProvider(resource=Resource.create({"service.name": service_name}))
    )


def get_tracer(name: str):
    return trace.get_tracer(name)


@contextmanager
def traced(tracer, span_name: str, **attributes: Any) -> Iterator[Any]:
    """Start a span and set the non-None attributes on it."""

    with tracer.start_as_current_span(span_name) as span:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(f"testid.{key}", value)
        yield span
