from agentcost_dashboard.errors import APIError
from agentcost_dashboard.fetchers import OptimizationsData
from agentcost_dashboard.models import (
    EmptyReason,
    OptimizationSuggestion,
    OptimizationSummary,
    Recommendation,
    RecommendationStatus,
)
from agentcost_dashboard.recommendations import (
    DISMISSED_MESSAGE,
    OptimizationsController,
    confidence_badge,
    empty_state_message,
    group_by_priority,
    quality_impact_badge,
)


class FakeClient:
    def __init__(self, configured: bool = True) -> None:
        self.configured = configured
        self.implemented: list[str] = []
        self.dismissed: list[tuple[str, str | None]] = []
        self.fail_with: APIError | None = None

    def is_configured(self) -> bool:
        return self.configured

    def mark_recommendation_implemented(self, recommendation_id: str) -> None:
        if self.fail_with:
            raise self.fail_with
        self.implemented.append(recommendation_id)

    def dismiss_recommendation(self, recommendation_id: str, feedback: str | None = None) -> None:
        if self.fail_with:
            raise self.fail_with
        self.dismissed.append((recommendation_id, feedback))


class FakeLoader:
    def __init__(self, data: OptimizationsData | None = None, error: APIError | None = None) -> None:
        self.data = data or OptimizationsData()
        self.error = error
        self.calls = 0

    def __call__(self, client) -> OptimizationsData:
        self.calls += 1
        if self.error:
            raise self.error
        return self.data


def make_suggestion(**overrides) -> OptimizationSuggestion:
    fields = {
        "type": "model_downgrade",
        "title": "Use a smaller model",
        "description": "router can run on gpt-4o-mini",
        "priority": "high",
        "agent_name": "router",
        "model": "gpt-4o",
        "alternative_model": "gpt-4o-mini",
    }
    fields.update(overrides)
    return OptimizationSuggestion(**fields)


def make_rec(rec_id: str = "r1", **overrides) -> Recommendation:
    fields = {
        "id": rec_id,
        "type": "model_downgrade",
        "title": "Use a smaller model",
        "agent_name": "router",
        "model": "gpt-4o",
        "estimated_monthly_savings": 42.5,
    }
    fields.update(overrides)
    return Recommendation(**fields)


def make_controller(data: OptimizationsData | None = None, **loader_kwargs):
    client = FakeClient()
    loader = FakeLoader(data, **loader_kwargs)
    return OptimizationsController(client, loader=loader), client, loader


def test_fetch_populates_state() -> None:
    data = OptimizationsData(
        suggestions=[make_suggestion()],
        summary=OptimizationSummary(suggestion_count=1),
        recommendations=[make_rec()],
    )
    controller, _, _ = make_controller(data)

    controller.fetch()

    assert controller.loaded is True
    assert len(controller.suggestions) == 1
    assert controller.summary.suggestion_count == 1
    assert controller.find_recommendation(controller.suggestions[0]).id == "r1"
    assert controller.empty_state() is None


def test_fetch_skipped_without_api_key() -> None:
    loader = FakeLoader()
    controller = OptimizationsController(FakeClient(configured=False), loader=loader)

    controller.fetch()

    assert loader.calls == 0
    assert controller.needs_onboarding is True


def test_fetch_invalid_key_switches_to_onboarding() -> None:
    error = APIError("API Error: 401 Unauthorized - Invalid API key", status_code=401)
    controller, _, _ = make_controller(error=error)

    controller.fetch()

    assert controller.show_onboarding is True
    assert controller.error is None


def test_fetch_other_failure_sets_error() -> None:
    error = APIError("API Error: 500 Internal Server Error - boom", status_code=500)
    controller, _, _ = make_controller(error=error)

    controller.fetch()

    assert controller.error == "API Error: 500 Internal Server Error - boom"
    assert controller.loaded is True


def test_find_recommendation_matches_type_agent_and_model() -> None:
    controller, _, _ = make_controller(
        OptimizationsData(recommendations=[make_rec("r1", model="gpt-4"), make_rec("r2"), make_rec("r3")])
    )
    controller.fetch()

    assert controller.find_recommendation(make_suggestion()).id == "r2"
    assert controller.find_recommendation(make_suggestion(type="caching")) is None


def test_implement_resolves_once() -> None:
    rec = make_rec()
    controller, client, _ = make_controller(OptimizationsData(recommendations=[rec]))
    controller.fetch()

    assert controller.implement(rec) is True
    assert client.implemented == ["r1"]
    assert controller.status_of("r1") is RecommendationStatus.IMPLEMENTED
    assert controller.implemented_recommendation is rec
    assert controller.success_message == "Marked as implemented! Estimated savings: $42.50/month"
    assert controller.recommendations == []

    assert controller.implement(rec) is False
    assert controller.dismiss("r1") is False
    assert client.implemented == ["r1"]
    assert client.dismissed == []
    assert controller.error == "This recommendation was already implemented."


def test_refetch_keeps_resolved_recommendations_hidden() -> None:
    rec = make_rec()
    controller, _, loader = make_controller(OptimizationsData(recommendations=[rec]))
    controller.fetch()
    controller.implement(rec)

    controller.close_implementation_modal()

    assert loader.calls == 2
    assert controller.implemented_recommendation is None
    assert controller.recommendations == []


def test_dialog_closed_without_done_refetches_on_next_render() -> None:
    rec = make_rec()
    controller, _, loader = make_controller(OptimizationsData(recommendations=[rec]))
    controller.fetch()
    controller.implement(rec)

    assert controller.settle_implementation_modal(showing=True) is False
    assert loader.calls == 1
    assert controller.implemented_recommendation is rec

    assert controller.settle_implementation_modal(showing=False) is True
    assert loader.calls == 2
    assert controller.implemented_recommendation is None

    assert controller.settle_implementation_modal(showing=False) is False
    assert loader.calls == 2


def test_dismiss_sends_trimmed_feedback_and_refetches() -> None:
    controller, client, loader = make_controller(OptimizationsData(recommendations=[make_rec()]))
    controller.fetch()

    assert controller.dismiss("r1", "  Quality concerns  ") is True
    assert client.dismissed == [("r1", "Quality concerns")]
    assert controller.success_message == DISMISSED_MESSAGE
    assert loader.calls == 2

    controller.clear_success_message()
    assert controller.success_message is None


def test_dismiss_without_feedback_sends_none() -> None:
    controller, client, _ = make_controller(OptimizationsData(recommendations=[make_rec()]))
    controller.fetch()
    controller.dismiss("r1", "   ")
    assert client.dismissed == [("r1", None)]


def test_failed_implement_leaves_recommendation_pending() -> None:
    controller, client, _ = make_controller(OptimizationsData(recommendations=[make_rec()]))
    controller.fetch()
    client.fail_with = APIError("API Error: 500 Internal Server Error", status_code=500)

    assert controller.implement(controller.recommendations[0]) is False
    assert controller.status_of("r1") is RecommendationStatus.PENDING
    assert controller.error
    assert len(controller.recommendations) == 1


def test_empty_state_messages_by_reason() -> None:
    assert empty_state_message(OptimizationSummary(empty_reason=EmptyReason.NO_DATA)).title == "No usage data yet"

    gathering = empty_state_message(OptimizationSummary(empty_reason=EmptyReason.INSUFFICIENT_DATA, event_count=7))
    assert gathering.title == "Gathering more data"
    assert "You have 7 events so far" in gathering.body

    baselines = empty_state_message(OptimizationSummary(empty_reason=EmptyReason.NO_BASELINES, event_count=25))
    assert baselines.title == "Building usage baselines"

    optimized = empty_state_message(OptimizationSummary(empty_reason=EmptyReason.OPTIMIZED, event_count=300))
    assert "across 300 analyzed events" in optimized.body

    fallback = empty_state_message(OptimizationSummary())
    assert fallback.title == "Your setup is optimized!"
    assert fallback.hint is None


def test_controller_empty_state_only_without_suggestions() -> None:
    controller, _, _ = make_controller(
        OptimizationsData(summary=OptimizationSummary(empty_reason=EmptyReason.NO_DATA))
    )
    assert controller.empty_state() is None

    controller.fetch()
    assert controller.empty_state().title == "No usage data yet"


def test_confidence_badge() -> None:
    assert confidence_badge(make_suggestion()).label == "Suggested"

    once = confidence_badge(make_suggestion(metrics={"source": "learned", "times_implemented": 1}))
    assert once.label == "Proven"
    assert once.detail is None

    proven = confidence_badge(
        make_suggestion(
            metrics={
                "source": "learned",
                "times_implemented": 4,
                "confidence_score": 0.87,
                "savings_accuracy": 91.4,
            }
        )
    )
    assert proven.label == "Proven (4x implemented)"
    assert proven.color == "green"
    assert proven.detail == "87% confidence • 91% accurate"


def test_quality_impact_badge() -> None:
    assert quality_impact_badge(make_suggestion(metrics={"quality_impact": "moderate"})).color == "yellow"
    assert quality_impact_badge(make_suggestion(metrics={"quality_impact": "unknown"})) is None
    assert quality_impact_badge(make_suggestion()) is None


def test_group_by_priority_keeps_all_buckets() -> None:
    groups = group_by_priority([make_suggestion(priority="low"), make_suggestion(priority="high")])
    assert list(groups) == ["high", "medium", "low"]
    assert groups["medium"] == []
    assert len(groups["high"]) == 1
