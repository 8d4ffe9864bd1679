import pytest

from agentcost_dashboard.errors import APIError
from agentcost_dashboard.fetchers import (
    EventsPage,
    fetch_agents,
    fetch_dashboard,
    fetch_events_page,
    fetch_joined,
    fetch_optimizations,
    validate_time_range,
)
from agentcost_dashboard.models import (
    AgentStats,
    AnalyticsOverview,
    Event,
    ModelStats,
    OptimizationSummary,
    TimeSeriesPoint,
)


class FakeClient:
    def __init__(self, fail_on: str | None = None) -> None:
        self.calls: list[tuple] = []
        self.fail_on = fail_on

    def _record(self, name: str, *args):
        self.calls.append((name, *args))
        if name == self.fail_on:
            raise APIError(f"API Error: 500 Internal Server Error - {name} failed", status_code=500)

    def get_overview(self, range_):
        self._record("overview", range_)
        return AnalyticsOverview(total_cost=12.5, total_calls=40)

    def get_agent_stats(self, range_, limit=10):
        self._record("agents", range_, limit)
        return [AgentStats(agent_name="router", total_cost=10.0)]

    def get_model_stats(self, range_, limit=10):
        self._record("models", range_, limit)
        return [ModelStats(model="gpt-4o", total_cost=12.5)]

    def get_time_series(self, range_):
        self._record("timeseries", range_)
        return [TimeSeriesPoint(timestamp="2026-01-01T00:00:00Z", cost=1.0, calls=3)]

    def get_events(self, limit, offset):
        self._record("events", limit, offset)
        return [Event(id="e1", project_id="p1", agent_name="router", model="gpt-4o")]

    def get_event_count(self):
        self._record("count")
        return 120

    def get_optimizations(self):
        self._record("optimizations")
        return []

    def get_optimization_summary(self):
        self._record("summary")
        return OptimizationSummary(event_count=5)

    def get_pending_recommendations(self):
        self._record("recommendations")
        return []


def test_fetch_dashboard_joins_all_four_calls() -> None:
    client = FakeClient()

    bundle = fetch_dashboard(client, "30d")

    assert bundle.overview.total_cost == 12.5
    assert bundle.agents[0].agent_name == "router"
    assert bundle.models[0].model == "gpt-4o"
    assert len(bundle.timeseries) == 1
    assert sorted(call[0] for call in client.calls) == ["agents", "models", "overview", "timeseries"]
    assert all(call[1] == "30d" for call in client.calls)


def test_fetch_dashboard_surfaces_first_failure() -> None:
    with pytest.raises(APIError, match="models failed"):
        fetch_dashboard(FakeClient(fail_on="models"))


def test_fetch_dashboard_rejects_unknown_range() -> None:
    with pytest.raises(ValueError):
        fetch_dashboard(FakeClient(), "1y")
    assert validate_time_range("24h") == "24h"


def test_fetch_agents_uses_detail_limit() -> None:
    client = FakeClient()
    fetch_agents(client, "7d")
    assert client.calls == [("agents", "7d", 50)]


def test_fetch_events_page_offsets_by_page() -> None:
    client = FakeClient()

    page = fetch_events_page(client, page=2)

    assert ("events", 50, 100) in client.calls
    assert page.total == 120
    assert page.total_pages == 3
    assert page.first_row == 101
    assert page.last_row == 120
    assert page.has_previous is True
    assert page.has_next is False


def test_fetch_events_page_rejects_negative_page() -> None:
    with pytest.raises(ValueError):
        fetch_events_page(FakeClient(), page=-1)


def test_empty_events_page_bounds() -> None:
    page = EventsPage(events=[], total=0)
    assert page.first_row == 0
    assert page.last_row == 0
    assert page.has_next is False


def test_fetch_optimizations_collects_three_sources() -> None:
    data = fetch_optimizations(FakeClient())
    assert data.summary.event_count == 5
    assert data.suggestions == []


def test_fetch_joined_preserves_order() -> None:
    assert fetch_joined(lambda: 1, lambda: 2, lambda: 3) == [1, 2, 3]
