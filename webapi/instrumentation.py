"""
Span-and-counter wrapper around a unit of work.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Awaitable, Callable, Iterator, Optional, TypeVar

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.metrics import Counter
from opentelemetry.trace import Span, Status, StatusCode

logger = logging.getLogger(__name__)

T = TypeVar("T")
ATTRIBUTE_TYPES = (str, bool, int, float)


class InstrumentedOperation:
    """
    Runs a body inside a span, tags the span with the body's result and adds
    the result to a counter.

    The span is ended on every exit path. Tagging and the counter increment
    only happen when the body returns; if it raises, the span is marked as
    failed and the exception propagates unchanged.

    Only non-negative numeric results are counted; other results are tagged
    when they are valid span attribute values and otherwise left untagged.

    Spans nest under the ambient current span unless an explicit ``context``
    is passed, which lets callers keep parenting correct when work hops
    between threads or callbacks that do not carry ``contextvars``.
    """

    def __init__(
        self,
        tracer: trace.Tracer,
        counter: Counter,
        result_attribute: str = "sum",
    ):
        self.tracer = tracer
        self.counter = counter
        self.result_attribute = result_attribute

    @contextmanager
    def span(self, name: str, *, context: Optional[Context] = None) -> Iterator[Span]:
        with self.tracer.start_as_current_span(
            name,
            context=context,
            record_exception=True,
            set_status_on_exception=True,
        ) as span:
            yield span

    def run(
        self,
        name: str,
        body: Callable[[], T],
        *,
        context: Optional[Context] = None,
    ) -> T:
        with self.span(name, context=context) as span:
            result = body()
            self._record(span, result)
            return result

    async def run_async(
        self,
        name: str,
        body: Callable[[], Awaitable[T]],
        *,
        context: Optional[Context] = None,
    ) -> T:
        with self.span(name, context=context) as span:
            result = await body()
            self._record(span, result)
            return result

    def _record(self, span: Span, result: object) -> None:
        if isinstance(result, bool) or not isinstance(result, (int, float)):
            logger.info(
                "Not counting non-numeric %s result", type(result).__name__
            )
        elif result < 0:
            logger.warning(
                "Not adding negative value %s to monotonic counter", result
            )
        else:
            self.counter.add(result)

        if isinstance(result, ATTRIBUTE_TYPES):
            span.set_attribute(self.result_attribute, result)
        span.set_status(Status(StatusCode.OK))
