from agentcost_dashboard.models import AgentStats, Event, ModelStats, TimeSeriesPoint
from agentcost_dashboard.transformers import (
    agents_display_table,
    build_agents_df,
    build_events_df,
    build_models_df,
    build_timeseries_df,
    events_display_table,
    models_display_table,
)


def test_build_timeseries_df_sorts_and_drops_bad_timestamps() -> None:
    points = [
        TimeSeriesPoint(timestamp="2026-01-02T00:00:00Z", cost=2.0, calls=4, tokens=400),
        TimeSeriesPoint(timestamp="not-a-date", cost=9.0, calls=9),
        TimeSeriesPoint(timestamp="2026-01-01T00:00:00Z", cost=1.0, calls=2, tokens=200),
    ]

    df = build_timeseries_df(points)

    assert list(df.columns) == ["period", "cost", "calls", "tokens"]
    assert len(df) == 2
    assert df["cost"].tolist() == [1.0, 2.0]
    assert df["calls"].sum() == 6


def test_build_agents_df_adds_cost_share_and_sorts() -> None:
    agents = [
        AgentStats(agent_name="summarizer", total_cost=1.0, total_calls=10),
        AgentStats(agent_name="router", total_cost=3.0, total_calls=30),
    ]

    df = build_agents_df(agents)

    assert df["agent_name"].tolist() == ["router", "summarizer"]
    assert df["cost_share"].tolist() == [75.0, 25.0]


def test_build_models_df_handles_zero_cost() -> None:
    df = build_models_df([ModelStats(model="local-llama", total_calls=5)])
    assert df["cost_share"].tolist() == [0.0]


def test_empty_inputs_keep_columns() -> None:
    assert build_timeseries_df([]).empty
    agents = build_agents_df([])
    assert agents.empty
    assert "cost_share" in agents.columns
    assert list(agents_display_table(agents).columns)[0] == "Agent"
    assert list(models_display_table(build_models_df([])).columns)[0] == "Model"
    assert events_display_table(build_events_df([])).empty


def test_display_tables_format_values() -> None:
    models = build_models_df(
        [ModelStats(model="gpt-4o", total_calls=1500, total_cost=12.5, input_tokens=2_000_000, avg_latency_ms=1500)]
    )

    table = models_display_table(models)
    row = table.iloc[0]

    assert row["Calls"] == "1.5K"
    assert row["Cost"] == "$12.50"
    assert row["Input Tokens"] == "2.0M"
    assert row["Avg Latency"] == "1.50s"
    assert row["Share"] == "100.0%"


def test_events_display_table_reports_status() -> None:
    events = [
        Event(id="e1", project_id="p1", agent_name="router", model="gpt-4o", timestamp="2026-01-05T14:30:00Z"),
        Event(id="e2", project_id="p1", agent_name="router", model="gpt-4o", success=False, error="timeout"),
    ]

    table = events_display_table(build_events_df(events))

    assert table["Status"].tolist() == ["Success", "Error: timeout"]
    assert table["Time"].tolist() == ["Jan 5, 02:30 PM", ""]
