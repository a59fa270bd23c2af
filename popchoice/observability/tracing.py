from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator, Protocol

import opik

from .config import DEFAULT_TRACING_CONFIG, TracingConfig

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SpanRecord:
    name: str
    type: str
    input: dict[str, Any]
    start_time: datetime = field(default_factory=_now)
    output: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    end_time: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None


@dataclass
class TraceRecord:
    name: str
    input: dict[str, Any]
    tags: list[str]
    trace_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    start_time: datetime = field(default_factory=_now)
    spans: list[SpanRecord] = field(default_factory=list)
    output: dict[str, Any] = field(default_factory=dict)
    total_cost: float = 0.0
    total_tokens: int = 0
    success: bool | None = None
    error_message: str | None = None
    end_time: datetime | None = None

    @property
    def finalized(self) -> bool:
        return self.end_time is not None

    def metadata(self) -> dict[str, Any]:
        meta: dict[str, Any] = {
            "traceId": self.trace_id,
            "totalTokens": self.total_tokens,
            "totalCost": self.total_cost,
            "success": self.success,
        }
        if self.error_message is not None:
            meta["errorMessage"] = self.error_message
        return meta


class TraceSink(Protocol):
    def export(self, record: TraceRecord) -> None: ...

    def flush(self) -> None: ...


class TraceRecorder:
    """
    Request-scoped trace with sequential child spans.

    Spans are always closed, on error too, and the trace is finalized once.
    """

    def __init__(self, name: str, input: dict[str, Any], tags: list[str]) -> None:
        self.record = TraceRecord(name=name, input=input, tags=tags)

    @contextmanager
    def span(self, name: str, type: str, input: dict[str, Any]) -> Iterator[SpanRecord]:
        if self.record.finalized:
            raise RuntimeError(f"Trace {self.record.trace_id} is already finalized")
        current = SpanRecord(name=name, type=type, input=input)
        self.record.spans.append(current)
        try:
            yield current
        except Exception as exc:
            current.output = {"error": getattr(exc, "details", None) or str(exc)}
            raise
        finally:
            current.end_time = _now()

    def add_usage(self, cost: float, tokens: int = 0) -> None:
        self.record.total_cost += cost
        self.record.total_tokens += tokens

    def finalize(
        self,
        success: bool,
        output: dict[str, Any],
        error_message: str | None = None,
    ) -> TraceRecord:
        if self.record.finalized:
            raise RuntimeError(f"Trace {self.record.trace_id} is already finalized")
        self.record.success = success
        self.record.output = output
        self.record.error_message = error_message
        self.record.end_time = _now()
        return self.record


class OpikTraceSink:
    """Sends finished traces to Opik."""

    def __init__(
        self,
        config: TracingConfig = DEFAULT_TRACING_CONFIG,
        client: opik.Opik | None = None,
    ) -> None:
        self.config = config
        self._client = client

    @property
    def client(self) -> opik.Opik:
        if self._client is None:
            self._client = opik.Opik(
                project_name=self.config.project_name,
                workspace=self.config.workspace,
                host=self.config.url,
                api_key=self.config.api_key,
            )
        return self._client

    def export(self, record: TraceRecord) -> None:
        trace = self.client.trace(
            name=record.name,
            input=record.input,
            tags=list(record.tags),
            start_time=record.start_time,
        )
        for span in record.spans:
            trace.span(
                name=span.name,
                type=span.type,
                input=span.input,
                output=span.output,
                metadata=span.metadata or None,
                start_time=span.start_time,
                end_time=span.end_time,
            )
        trace.update(output=record.output, metadata=record.metadata())
        trace.end()

    def flush(self) -> None:
        self.client.flush()


class NullTraceSink:
    """Used when tracing is disabled; keeps the record in the log only."""

    def export(self, record: TraceRecord) -> None:
        logger.debug(
            "trace %s success=%s spans=%d cost=%.8f tokens=%d",
            record.trace_id,
            record.success,
            len(record.spans),
            record.total_cost,
            record.total_tokens,
        )

    def flush(self) -> None:
        return None


def build_trace_sink(config: TracingConfig = DEFAULT_TRACING_CONFIG) -> TraceSink:
    if not config.enabled:
        return NullTraceSink()
    return OpikTraceSink(config)
