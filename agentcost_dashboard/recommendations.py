"""State for the optimizations page: suggestions, pending recommendations and their lifecycle."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from agentcost_dashboard.api_client import AgentCostClient
from agentcost_dashboard.errors import APIError, is_unauthorized_api_key_error, parse_api_error
from agentcost_dashboard.fetchers import OptimizationsData, fetch_optimizations
from agentcost_dashboard.formatting import format_currency
from agentcost_dashboard.models import (
    EmptyReason,
    OptimizationSuggestion,
    OptimizationSummary,
    Recommendation,
    RecommendationStatus,
)

logger = logging.getLogger(__name__)

PRIORITIES = ("high", "medium", "low")

DISMISSED_MESSAGE = "Recommendation dismissed. We'll learn from your feedback."

_QUALITY_IMPACT_LABELS = {
    "minimal": ("Minimal quality impact", "green"),
    "moderate": ("Moderate quality impact", "yellow"),
    "significant": ("Significant quality impact", "red"),
}


@dataclass(frozen=True)
class EmptyStateMessage:
    title: str
    body: str
    hint: str | None = None


@dataclass(frozen=True)
class Badge:
    label: str
    color: str
    detail: str | None = None


def implemented_message(rec: Recommendation) -> str:
    return f"Marked as implemented! Estimated savings: {format_currency(rec.estimated_monthly_savings)}/month"


def empty_state_message(summary: OptimizationSummary) -> EmptyStateMessage:
    count = summary.event_count

    if summary.empty_reason is EmptyReason.NO_DATA:
        return EmptyStateMessage(
            title="No usage data yet",
            body=(
                "Start sending LLM events to get personalized cost optimization recommendations. "
                "Integrate the AgentCost SDK into your application to begin tracking."
            ),
            hint="Need help? Check the documentation for SDK integration guides.",
        )
    if summary.empty_reason is EmptyReason.INSUFFICIENT_DATA:
        return EmptyStateMessage(
            title="Gathering more data",
            body=(
                f"You have {count} events so far. The optimization engine needs at least 10 calls "
                "per agent/model combination to generate meaningful recommendations."
            ),
            hint="Keep using your LLM agents and check back soon!",
        )
    if summary.empty_reason is EmptyReason.NO_BASELINES:
        return EmptyStateMessage(
            title="Building usage baselines",
            body=(
                f"You have {count} events, but each agent/model needs at least 10 calls to establish "
                "statistical baselines. Baselines enable anomaly detection and accurate savings estimates."
            ),
            hint="Focus usage on specific agents to build baselines faster.",
        )
    if summary.empty_reason is EmptyReason.OPTIMIZED:
        return EmptyStateMessage(
            title="Your setup is optimized!",
            body=(
                "No cost optimization opportunities found based on your current usage patterns "
                f"across {count} analyzed events. Keep monitoring as your usage evolves."
            ),
            hint="Pro tip: As model prices change, new optimization opportunities may appear.",
        )
    return EmptyStateMessage(
        title="Your setup is optimized!",
        body=(
            "No cost optimization opportunities found based on your current usage patterns. "
            "Keep monitoring as your usage grows."
        ),
    )


def confidence_badge(suggestion: OptimizationSuggestion) -> Badge:
    """Label learned alternatives backed by real implementations as proven."""
    metrics = suggestion.metrics
    times_implemented = metrics.get("times_implemented") or 0
    if metrics.get("source") != "learned" or times_implemented <= 0:
        return Badge(label="Suggested", color="gray")

    label = "Proven"
    if times_implemented > 1:
        label = f"Proven ({times_implemented}x implemented)"

    parts = []
    confidence = metrics.get("confidence_score")
    if confidence:
        parts.append(f"{round(confidence * 100)}% confidence")
    accuracy = metrics.get("savings_accuracy")
    if accuracy:
        parts.append(f"{accuracy:.0f}% accurate")
    return Badge(label=label, color="green", detail=" • ".join(parts) or None)


def quality_impact_badge(suggestion: OptimizationSuggestion) -> Badge | None:
    impact = suggestion.metrics.get("quality_impact")
    if impact not in _QUALITY_IMPACT_LABELS:
        return None
    label, color = _QUALITY_IMPACT_LABELS[impact]
    return Badge(label=label, color=color)


def group_by_priority(suggestions: list[OptimizationSuggestion]) -> dict[str, list[OptimizationSuggestion]]:
    return {priority: [s for s in suggestions if s.priority == priority] for priority in PRIORITIES}


class OptimizationsController:
    """Holds the optimizations page state between reruns.

    Pending recommendations move one way, to ``implemented`` or
    ``dismissed``. Resolved ids are remembered so a stale button cannot
    resolve the same recommendation twice.
    """

    def __init__(
        self,
        client: AgentCostClient,
        *,
        loader: Callable[[AgentCostClient], OptimizationsData] = fetch_optimizations,
    ) -> None:
        self.client = client
        self.loader = loader
        self.suggestions: list[OptimizationSuggestion] = []
        self.summary: OptimizationSummary | None = None
        self.recommendations: list[Recommendation] = []
        self.statuses: dict[str, RecommendationStatus] = {}
        self.error: str | None = None
        self.success_message: str | None = None
        self.show_onboarding = False
        self.implemented_recommendation: Recommendation | None = None
        self.loaded = False

    @property
    def needs_onboarding(self) -> bool:
        return self.show_onboarding or not self.client.is_configured()

    def fetch(self) -> None:
        if not self.client.is_configured():
            return

        try:
            data = self.loader(self.client)
        except APIError as exc:
            if is_unauthorized_api_key_error(exc):
                self.show_onboarding = True
                self.error = None
            else:
                self.error = str(exc)
            return
        finally:
            self.loaded = True

        self.suggestions = data.suggestions
        self.summary = data.summary
        self.recommendations = [
            rec for rec in data.recommendations if self.status_of(rec.id) is RecommendationStatus.PENDING
        ]
        self.show_onboarding = False
        self.error = None

    def status_of(self, recommendation_id: str) -> RecommendationStatus:
        return self.statuses.get(recommendation_id, RecommendationStatus.PENDING)

    def find_recommendation(self, suggestion: OptimizationSuggestion) -> Recommendation | None:
        for rec in self.recommendations:
            if (
                rec.type == suggestion.type
                and rec.agent_name == suggestion.agent_name
                and rec.model == suggestion.model
            ):
                return rec
        return None

    def implement(self, rec: Recommendation) -> bool:
        if not self._can_resolve(rec.id):
            return False

        try:
            self.client.mark_recommendation_implemented(rec.id)
        except APIError as exc:
            logger.warning("Failed to mark recommendation %s as implemented: %s", rec.id, exc)
            self.error = parse_api_error(exc)
            return False

        self._resolve(rec.id, RecommendationStatus.IMPLEMENTED)
        self.success_message = implemented_message(rec)
        self.implemented_recommendation = rec
        return True

    def close_implementation_modal(self) -> None:
        self.implemented_recommendation = None
        self.fetch()

    def settle_implementation_modal(self, showing: bool) -> bool:
        """Close a dialog that went away without its Done button; True if it refetched."""
        if showing or self.implemented_recommendation is None:
            return False
        self.close_implementation_modal()
        return True

    def dismiss(self, recommendation_id: str, feedback: str = "") -> bool:
        if not self._can_resolve(recommendation_id):
            return False

        try:
            self.client.dismiss_recommendation(recommendation_id, feedback.strip() or None)
        except APIError as exc:
            logger.warning("Failed to dismiss recommendation %s: %s", recommendation_id, exc)
            self.error = parse_api_error(exc)
            return False

        self._resolve(recommendation_id, RecommendationStatus.DISMISSED)
        self.success_message = DISMISSED_MESSAGE
        self.fetch()
        return True

    def clear_success_message(self) -> None:
        self.success_message = None

    def grouped_suggestions(self) -> dict[str, list[OptimizationSuggestion]]:
        return group_by_priority(self.suggestions)

    def empty_state(self) -> EmptyStateMessage | None:
        if self.suggestions or self.error or self.summary is None:
            return None
        return empty_state_message(self.summary)

    def _can_resolve(self, recommendation_id: str) -> bool:
        status = self.status_of(recommendation_id)
        if status is RecommendationStatus.PENDING:
            return True
        self.error = f"This recommendation was already {status.value}."
        return False

    def _resolve(self, recommendation_id: str, status: RecommendationStatus) -> None:
        self.statuses[recommendation_id] = status
        self.recommendations = [rec for rec in self.recommendations if rec.id != recommendation_id]
