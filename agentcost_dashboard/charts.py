"""Plotly figures for the analytics pages."""

from __future__ import annotations

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

PLOTLY_TEMPLATE = "plotly_white"
CHART_HEIGHT = 340
TOP_N = 8

TOKEN_LABELS = {"input_tokens": "Input", "output_tokens": "Output"}


def _finish(fig: go.Figure, *, legend: bool = False) -> go.Figure:
    fig.update_layout(
        template=PLOTLY_TEMPLATE,
        height=CHART_HEIGHT,
        margin={"l": 8, "r": 8, "t": 48, "b": 8},
        showlegend=legend,
        legend={"title": {"text": ""}, "orientation": "h", "y": -0.15},
    )
    return fig


def empty_figure(message: str) -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(text=message, x=0.5, y=0.5, xref="paper", yref="paper", showarrow=False)
    fig.update_xaxes(visible=False)
    fig.update_yaxes(visible=False)
    return _finish(fig)


def cost_trend_chart(timeseries: pd.DataFrame, title: str = "Cost Over Time") -> go.Figure:
    if timeseries.empty:
        return empty_figure("No cost data for selected range")

    fig = px.area(timeseries, x="period", y="cost", title=title)
    fig.update_traces(hovertemplate="%{x|%b %d, %H:%M}<br>$%{y:.4f}<extra></extra>")
    fig.update_xaxes(title=None)
    fig.update_yaxes(title="Cost (USD)", tickprefix="$")
    return _finish(fig)


def call_volume_chart(timeseries: pd.DataFrame, title: str = "Calls Over Time") -> go.Figure:
    if timeseries.empty:
        return empty_figure("No call data for selected range")

    fig = px.bar(timeseries, x="period", y="calls", title=title)
    fig.update_traces(hovertemplate="%{x|%b %d, %H:%M}<br>%{y:,} calls<extra></extra>")
    fig.update_xaxes(title=None)
    fig.update_yaxes(title="Calls")
    return _finish(fig)


def agent_cost_chart(agents: pd.DataFrame) -> go.Figure:
    """Horizontal bars for the most expensive agents, largest on top."""
    if agents.empty:
        return empty_figure("No agent data")

    top = agents.head(TOP_N)
    fig = px.bar(
        top,
        x="total_cost",
        y="agent_name",
        orientation="h",
        title="Cost by Agent",
        custom_data=["cost_share"],
    )
    fig.update_traces(hovertemplate="%{y}<br>$%{x:.4f} (%{customdata[0]:.1f}%)<extra></extra>")
    fig.update_xaxes(title="Cost (USD)", tickprefix="$")
    fig.update_yaxes(title=None, autorange="reversed")
    return _finish(fig)


def model_cost_share_chart(models: pd.DataFrame) -> go.Figure:
    if models.empty:
        return empty_figure("No model data")

    billed = models[models["total_cost"] > 0]
    if billed.empty:
        return empty_figure("No model cost recorded")

    fig = px.pie(billed.head(TOP_N), names="model", values="total_cost", title="Cost Share by Model", hole=0.45)
    fig.update_traces(textinfo="percent", hovertemplate="%{label}<br>$%{value:.4f}<extra></extra>")
    return _finish(fig, legend=True)


def model_tokens_chart(models: pd.DataFrame) -> go.Figure:
    """Stacked input/output token bars per model."""
    if models.empty:
        return empty_figure("No token usage recorded")

    tokens = (
        models.head(TOP_N)
        .melt(id_vars=["model"], value_vars=list(TOKEN_LABELS), var_name="direction", value_name="tokens")
        .assign(direction=lambda df: df["direction"].map(TOKEN_LABELS))
    )
    fig = px.bar(tokens, x="model", y="tokens", color="direction", title="Tokens by Model")
    fig.update_xaxes(title=None)
    fig.update_yaxes(title="Tokens")
    return _finish(fig, legend=True)
