"""Data fetch orchestration for the analytics pages.

Pages that need several endpoints issue them concurrently and join; the first
failure propagates so the page shows a single error instead of partial data.
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable

from agentcost_dashboard.api_client import AgentCostClient
from agentcost_dashboard.config import (
    DEFAULT_TIME_RANGE,
    DETAIL_STATS_LIMIT,
    EVENTS_PAGE_SIZE,
    FETCH_MAX_WORKERS,
    TIME_RANGES,
)
from agentcost_dashboard.models import (
    AgentStats,
    AnalyticsBundle,
    Event,
    ModelStats,
    OptimizationSuggestion,
    OptimizationSummary,
    Recommendation,
)


@dataclass(frozen=True)
class EventsPage:
    events: list[Event]
    total: int
    page: int = 0
    page_size: int = EVENTS_PAGE_SIZE

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    @property
    def first_row(self) -> int:
        return self.page * self.page_size + 1 if self.total else 0

    @property
    def last_row(self) -> int:
        return min((self.page + 1) * self.page_size, self.total)

    @property
    def has_previous(self) -> bool:
        return self.page > 0

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages


@dataclass(frozen=True)
class OptimizationsData:
    suggestions: list[OptimizationSuggestion] = field(default_factory=list)
    summary: OptimizationSummary | None = None
    recommendations: list[Recommendation] = field(default_factory=list)


def validate_time_range(range_: str) -> str:
    if range_ not in TIME_RANGES:
        raise ValueError(f"Unsupported time range {range_!r}; expected one of {', '.join(TIME_RANGES)}.")
    return range_


def fetch_joined(*calls: Callable[[], Any], max_workers: int = FETCH_MAX_WORKERS) -> list[Any]:
    """Run ``calls`` in parallel and return their results in order."""
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [pool.submit(call) for call in calls]
        return [future.result() for future in futures]


def fetch_dashboard(client: AgentCostClient, range_: str = DEFAULT_TIME_RANGE) -> AnalyticsBundle:
    range_ = validate_time_range(range_)
    overview, agents, models, timeseries = fetch_joined(
        lambda: client.get_overview(range_),
        lambda: client.get_agent_stats(range_),
        lambda: client.get_model_stats(range_),
        lambda: client.get_time_series(range_),
    )
    return AnalyticsBundle(overview=overview, agents=agents, models=models, timeseries=timeseries)


def fetch_agents(client: AgentCostClient, range_: str = DEFAULT_TIME_RANGE) -> list[AgentStats]:
    return client.get_agent_stats(validate_time_range(range_), DETAIL_STATS_LIMIT)


def fetch_models(client: AgentCostClient, range_: str = DEFAULT_TIME_RANGE) -> list[ModelStats]:
    return client.get_model_stats(validate_time_range(range_), DETAIL_STATS_LIMIT)


def fetch_events_page(client: AgentCostClient, page: int = 0, page_size: int = EVENTS_PAGE_SIZE) -> EventsPage:
    if page < 0:
        raise ValueError("Page index must be non-negative.")

    events, total = fetch_joined(
        lambda: client.get_events(page_size, page * page_size),
        client.get_event_count,
    )
    return EventsPage(events=events, total=total, page=page, page_size=page_size)


def fetch_optimizations(client: AgentCostClient) -> OptimizationsData:
    suggestions, summary, recommendations = fetch_joined(
        client.get_optimizations,
        client.get_optimization_summary,
        client.get_pending_recommendations,
    )
    return OptimizationsData(suggestions=suggestions, summary=summary, recommendations=recommendations)
