"""Run the enabled source connectors and assemble one generation input."""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Protocol

from draftdesk.config import SourceSettings
from draftdesk.errors import AppError, Result, log_error
from draftdesk.models import GenerationInput, MetricSnapshot
from draftdesk.sources.metrics import MetricsConnector
from draftdesk.sources.news import NewsConnector
from draftdesk.sources.social import SocialConnector

logger = logging.getLogger(__name__)


class Connector(Protocol):
    def fetch(self) -> Result[Any]: ...

    def close(self) -> None: ...


@dataclass(slots=True)
class SourceOutcome:
    """Per-source collection status."""

    name: str
    success: bool
    count: int = 0
    error: AppError | None = None


@dataclass(slots=True)
class CollectionReport:
    input: GenerationInput
    outcomes: list[SourceOutcome] = field(default_factory=list)


ConnectorFactory = Callable[[SourceSettings], Connector]


class SourceCollector:
    """Collect news, social posts and metrics according to feature toggles.

    Each connector is created fresh per collection so parallel runs share no
    HTTP client or other state.
    """

    def __init__(
        self,
        settings: SourceSettings,
        *,
        news_factory: ConnectorFactory = NewsConnector,
        social_factory: ConnectorFactory = SocialConnector,
        metrics_factory: ConnectorFactory = MetricsConnector,
    ) -> None:
        self.settings = settings
        self._factories: dict[str, ConnectorFactory] = {}
        if settings.news_enabled:
            self._factories["news"] = news_factory
        if settings.social_enabled:
            self._factories["social"] = social_factory
        if settings.metrics_enabled:
            self._factories["metrics"] = metrics_factory

    def collect(self, *, parallel: bool = False) -> CollectionReport:
        names = list(self._factories)
        if parallel and len(names) > 1:
            with ThreadPoolExecutor(max_workers=len(names), thread_name_prefix="source") as pool:
                results = list(pool.map(self._run, names))
        else:
            results = [self._run(name) for name in names]

        generation_input = GenerationInput()
        outcomes: list[SourceOutcome] = []
        for name, result in zip(names, results, strict=True):
            if result.error is not None:
                log_error(f"collect:{name}", result.error)
                outcomes.append(SourceOutcome(name=name, success=False, error=result.error))
                continue
            value = result.value
            if name == "metrics":
                generation_input.metrics = value if isinstance(value, MetricSnapshot) else None
                count = 1 if generation_input.metrics is not None else 0
            elif name == "news":
                generation_input.news = list(value or [])
                count = len(generation_input.news)
            else:
                generation_input.posts = list(value or [])
                count = len(generation_input.posts)
            outcomes.append(SourceOutcome(name=name, success=True, count=count))

        logger.info(
            "Collected sources: %s",
            ", ".join(
                f"{outcome.name}={outcome.count if outcome.success else 'failed'}"
                for outcome in outcomes
            )
            or "none enabled",
        )
        return CollectionReport(input=generation_input, outcomes=outcomes)

    def _run(self, name: str) -> Result[Any]:
        connector = self._factories[name](self.settings)
        try:
            return connector.fetch()
        finally:
            connector.close()
