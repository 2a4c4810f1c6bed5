from __future__ import annotations

from datetime import timedelta

import allure
import pytest
from conftest import NOW

from draftdesk.config import SourceSettings
from draftdesk.errors import ErrorKind, failure, success
from draftdesk.models import MetricSnapshot, NewsItem
from draftdesk.sources.collector import SourceCollector

pytestmark = [
    allure.epic("Source Collection"),
    allure.feature("Collector"),
]

NEWS = [
    NewsItem(
        title="Avalanche news",
        summary="",
        url="https://example.com/a",
        source="Example",
        published_at=NOW - timedelta(hours=1),
    ),
]


class _StubConnector:
    instances: list[_StubConnector] = []

    def __init__(self, result) -> None:
        self.result = result
        self.closed = False
        _StubConnector.instances.append(self)

    def fetch(self):
        return self.result

    def close(self) -> None:
        self.closed = True


def _factory(result):
    return lambda settings: _StubConnector(result)


@pytest.fixture(autouse=True)
def _reset_instances():
    _StubConnector.instances = []


@pytest.mark.parametrize("parallel", [False, True])
def test_collect_assembles_successful_sources_and_reports_failures(parallel: bool) -> None:
    snapshot = MetricSnapshot(subject="Avalanche", captured_at=NOW, tvl=1.0)
    collector = SourceCollector(
        SourceSettings(),
        news_factory=_factory(success(NEWS)),
        social_factory=_factory(failure(ErrorKind.MISSING_CREDENTIALS, "no token")),
        metrics_factory=_factory(success(snapshot)),
    )

    report = collector.collect(parallel=parallel)

    assert report.input.news == NEWS
    assert report.input.posts is None
    assert report.input.metrics is snapshot
    outcomes = {outcome.name: outcome for outcome in report.outcomes}
    assert outcomes["news"].count == 1
    assert outcomes["social"].success is False
    assert outcomes["social"].error is not None
    assert outcomes["social"].error.kind is ErrorKind.MISSING_CREDENTIALS
    assert outcomes["metrics"].count == 1
    assert all(connector.closed for connector in _StubConnector.instances)


def test_disabled_sources_are_not_run() -> None:
    collector = SourceCollector(
        SourceSettings(social_enabled=False, metrics_enabled=False),
        news_factory=_factory(success([])),
        social_factory=_factory(success([])),
        metrics_factory=_factory(success(None)),
    )

    report = collector.collect()

    assert [outcome.name for outcome in report.outcomes] == ["news"]
    assert report.input.news == []
    assert report.input.is_empty
