from agentcost_dashboard.guidance import implementation_steps, tracking_info
from agentcost_dashboard.models import Recommendation


def make_rec(type_: str, **overrides) -> Recommendation:
    fields = {
        "id": "r1",
        "type": type_,
        "title": "Switch model",
        "agent_name": "router",
        "model": "gpt-4o",
        "alternative_model": "gpt-4o-mini",
        "estimated_monthly_savings": 42.5,
    }
    fields.update(overrides)
    return Recommendation(**fields)


def test_model_downgrade_steps_show_before_and_after() -> None:
    steps = implementation_steps(make_rec("model_downgrade"))

    assert [step.title for step in steps] == [
        "Update your agent configuration",
        "Test with sample prompts",
        "Monitor performance",
    ]
    assert 'model = "gpt-4o"' in steps[0].code
    assert 'model = "gpt-4o-mini"' in steps[0].code
    assert '"router" agent' in steps[2].description


def test_model_downgrade_without_models_has_no_steps() -> None:
    assert implementation_steps(make_rec("model_downgrade", alternative_model=None)) == []


def test_caching_and_error_steps_include_snippets() -> None:
    caching = implementation_steps(make_rec("caching"))
    errors = implementation_steps(make_rec("error_reduction"))

    assert "lru_cache" in caching[0].code
    assert "tenacity" in errors[1].code


def test_latency_streaming_snippet_defaults_model() -> None:
    steps = implementation_steps(make_rec("latency", model=None))
    assert 'model="gpt-4"' in steps[1].code


def test_unknown_type_falls_back_to_description() -> None:
    steps = implementation_steps(make_rec("batching", description="Batch your calls"))
    assert len(steps) == 1
    assert steps[0].description == "Batch your calls"

    steps = implementation_steps(make_rec("batching"))
    assert steps[0].description == "Follow the action items in the recommendation to implement this optimization."


def test_tracking_info_mentions_savings() -> None:
    assert "$42.50/month" in tracking_info(make_rec("model_downgrade"))
    assert "$42.50/month" in tracking_info(make_rec("caching"))
    assert "30 days" in tracking_info(make_rec("error_reduction"))
    assert tracking_info(make_rec("latency")) == (
        "We'll track your usage patterns to measure the effectiveness of this optimization."
    )
