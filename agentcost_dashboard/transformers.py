"""Payload normalization into pandas DataFrames."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pandas as pd

from agentcost_dashboard.formatting import (
    format_currency,
    format_date,
    format_latency,
    format_number,
    format_percentage,
)
from agentcost_dashboard.models import AgentStats, Event, ModelStats, TimeSeriesPoint

TIMESERIES_COLUMNS = ["period", "cost", "calls", "tokens"]

AGENT_COLUMNS = [
    "agent_name",
    "total_calls",
    "total_cost",
    "total_tokens",
    "avg_latency_ms",
    "success_rate",
]

MODEL_COLUMNS = [
    "model",
    "total_calls",
    "total_cost",
    "total_tokens",
    "input_tokens",
    "output_tokens",
    "avg_latency_ms",
]

EVENT_COLUMNS = [
    "timestamp",
    "agent_name",
    "model",
    "input_tokens",
    "output_tokens",
    "total_tokens",
    "cost",
    "latency_ms",
    "success",
    "error",
]


def build_timeseries_df(points: Iterable[TimeSeriesPoint]) -> pd.DataFrame:
    rows = [
        {"period": point.timestamp, "cost": point.cost, "calls": point.calls, "tokens": point.tokens}
        for point in points
    ]
    df = pd.DataFrame(rows, columns=TIMESERIES_COLUMNS)
    if df.empty:
        return df

    df["period"] = pd.to_datetime(df["period"], utc=True, errors="coerce")
    df = df.dropna(subset=["period"])
    for col in ["cost", "calls", "tokens"]:
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0)
    return df.sort_values("period").reset_index(drop=True)


def build_agents_df(agents: Iterable[AgentStats]) -> pd.DataFrame:
    df = pd.DataFrame([_agent_row(agent) for agent in agents], columns=AGENT_COLUMNS)
    if df.empty:
        return df.assign(cost_share=pd.Series(dtype=float))
    return _with_cost_share(df, "total_cost").sort_values("total_cost", ascending=False).reset_index(drop=True)


def build_models_df(models: Iterable[ModelStats]) -> pd.DataFrame:
    df = pd.DataFrame([_model_row(model) for model in models], columns=MODEL_COLUMNS)
    if df.empty:
        return df.assign(cost_share=pd.Series(dtype=float))
    return _with_cost_share(df, "total_cost").sort_values("total_cost", ascending=False).reset_index(drop=True)


def build_events_df(events: Iterable[Event]) -> pd.DataFrame:
    rows = [
        {
            "timestamp": event.timestamp,
            "agent_name": event.agent_name,
            "model": event.model,
            "input_tokens": event.input_tokens,
            "output_tokens": event.output_tokens,
            "total_tokens": event.total_tokens,
            "cost": event.cost,
            "latency_ms": event.latency_ms,
            "success": event.success,
            "error": event.error,
        }
        for event in events
    ]
    return pd.DataFrame(rows, columns=EVENT_COLUMNS)


def agents_display_table(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=["Agent", "Calls", "Cost", "Tokens", "Avg Latency", "Success Rate", "Share"])
    return pd.DataFrame(
        {
            "Agent": df["agent_name"],
            "Calls": df["total_calls"].map(format_number),
            "Cost": df["total_cost"].map(format_currency),
            "Tokens": df["total_tokens"].map(format_number),
            "Avg Latency": df["avg_latency_ms"].map(format_latency),
            "Success Rate": df["success_rate"].map(format_percentage),
            "Share": df["cost_share"].map(format_percentage),
        }
    )


def models_display_table(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=["Model", "Calls", "Cost", "Input Tokens", "Output Tokens", "Avg Latency", "Share"])
    return pd.DataFrame(
        {
            "Model": df["model"],
            "Calls": df["total_calls"].map(format_number),
            "Cost": df["total_cost"].map(format_currency),
            "Input Tokens": df["input_tokens"].map(format_number),
            "Output Tokens": df["output_tokens"].map(format_number),
            "Avg Latency": df["avg_latency_ms"].map(format_latency),
            "Share": df["cost_share"].map(format_percentage),
        }
    )


def events_display_table(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=["Time", "Agent", "Model", "Tokens", "Cost", "Latency", "Status"])
    return pd.DataFrame(
        {
            "Time": df["timestamp"].map(_safe_date),
            "Agent": df["agent_name"],
            "Model": df["model"],
            "Tokens": df["total_tokens"].map(format_number),
            "Cost": df["cost"].map(format_currency),
            "Latency": df["latency_ms"].map(format_latency),
            "Status": [
                "Success" if ok else f"Error: {err}" if err else "Error"
                for ok, err in zip(df["success"], df["error"])
            ],
        }
    )


def _agent_row(agent: AgentStats) -> dict[str, Any]:
    return {
        "agent_name": agent.agent_name or "unknown",
        "total_calls": agent.total_calls,
        "total_cost": agent.total_cost,
        "total_tokens": agent.total_tokens,
        "avg_latency_ms": agent.avg_latency_ms,
        "success_rate": agent.success_rate,
    }


def _model_row(model: ModelStats) -> dict[str, Any]:
    return {
        "model": model.model or "unknown",
        "total_calls": model.total_calls,
        "total_cost": model.total_cost,
        "total_tokens": model.total_tokens,
        "input_tokens": model.input_tokens,
        "output_tokens": model.output_tokens,
        "avg_latency_ms": model.avg_latency_ms,
    }


def _with_cost_share(df: pd.DataFrame, cost_column: str) -> pd.DataFrame:
    df = df.copy()
    total = float(df[cost_column].sum())
    df["cost_share"] = (df[cost_column] / total * 100.0) if total > 0 else 0.0
    return df


def _safe_date(value: Any) -> str:
    if not value:
        return ""
    try:
        return format_date(str(value))
    except ValueError:
        return str(value)
