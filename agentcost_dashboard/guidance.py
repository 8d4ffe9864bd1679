"""Follow-up instructions shown after a recommendation is marked implemented."""

from __future__ import annotations

from dataclasses import dataclass

from agentcost_dashboard.formatting import format_currency
from agentcost_dashboard.models import OptimizationType, Recommendation

_CACHE_SNIPPET = """from functools import lru_cache

@lru_cache(maxsize=1000)
def cached_llm_call(prompt_hash: str):
    # Your LLM call here
    return response"""

_RETRY_SNIPPET = """import tenacity

@tenacity.retry(
    stop=tenacity.stop_after_attempt(3),
    wait=tenacity.wait_exponential(min=1, max=10)
)
def resilient_llm_call(prompt):
    return llm.call(prompt)"""

_STREAMING_SNIPPET = """# Enable streaming for faster first-token
response = await client.chat.completions.create(
    model="{model}",
    messages=messages,
    stream=True
)"""


@dataclass(frozen=True)
class ActionStep:
    title: str
    description: str
    code: str | None = None
    language: str | None = None


def implementation_steps(rec: Recommendation) -> list[ActionStep]:
    agent = rec.agent_name or "agent"

    if rec.type == OptimizationType.MODEL_DOWNGRADE.value:
        if not (rec.model and rec.alternative_model):
            return []
        return [
            ActionStep(
                title="Update your agent configuration",
                description=(
                    f'Change the model parameter from "{rec.model}" to "{rec.alternative_model}" in your agent code.'
                ),
                code=f'# Before\nmodel = "{rec.model}"\n\n# After\nmodel = "{rec.alternative_model}"',
                language="python",
            ),
            ActionStep(
                title="Test with sample prompts",
                description=(
                    f'Run a few test calls with "{rec.alternative_model}" to verify output quality '
                    "meets your requirements before full rollout."
                ),
            ),
            ActionStep(
                title="Monitor performance",
                description=(
                    f'After switching, monitor the "{agent}" agent\'s success rate and output quality '
                    "in AgentCost for the next few days."
                ),
            ),
        ]

    if rec.type == OptimizationType.CACHING.value:
        return [
            ActionStep(
                title="Identify cacheable patterns",
                description=(
                    f'The "{agent}" agent has repeated queries that can be cached. '
                    "Implement a cache layer for identical inputs."
                ),
                code=_CACHE_SNIPPET,
                language="python",
            ),
            ActionStep(
                title="Set appropriate TTL",
                description=(
                    "Choose a cache expiration time based on how often your data changes. "
                    "For static data, longer TTLs save more."
                ),
            ),
            ActionStep(
                title="Track cache hit rate",
                description=(
                    "Monitor your cache hit rate to measure effectiveness. "
                    "Aim for 30%+ hit rate for meaningful savings."
                ),
            ),
        ]

    if rec.type == OptimizationType.ERROR_REDUCTION.value:
        return [
            ActionStep(
                title="Analyze error patterns",
                description=f'Review the errors from "{agent}" agent to identify common failure modes.',
            ),
            ActionStep(
                title="Add retry logic",
                description="Implement exponential backoff for transient errors to avoid wasted calls.",
                code=_RETRY_SNIPPET,
                language="python",
            ),
            ActionStep(
                title="Validate inputs",
                description="Add input validation to catch malformed requests before they reach the LLM.",
            ),
        ]

    if rec.type == OptimizationType.ANOMALY_ALERT.value:
        return [
            ActionStep(
                title="Investigate the spike",
                description=(
                    "Check recent changes in your agent code or traffic patterns that might explain the anomaly."
                ),
            ),
            ActionStep(
                title="Set up alerts",
                description="Configure cost alerts to catch future anomalies before they impact your budget.",
            ),
            ActionStep(
                title="Review agent logic",
                description=(
                    f'Check if "{agent}" has any loops or recursive calls that could cause excessive API usage.'
                ),
            ),
        ]

    if rec.type == OptimizationType.LATENCY.value:
        return [
            ActionStep(
                title="Optimize prompts",
                description=(
                    f'Reduce prompt length for "{agent}" by removing unnecessary context '
                    "or using more concise instructions."
                ),
            ),
            ActionStep(
                title="Consider streaming",
                description="Use streaming responses for better perceived performance in user-facing applications.",
                code=_STREAMING_SNIPPET.format(model=rec.model or "gpt-4"),
                language="python",
            ),
            ActionStep(
                title="Batch when possible",
                description="Group multiple small requests into batches to reduce per-call overhead.",
            ),
        ]

    return [
        ActionStep(
            title="Review the recommendation",
            description=(
                rec.description
                or "Follow the action items in the recommendation to implement this optimization."
            ),
        )
    ]


def tracking_info(rec: Recommendation) -> str:
    savings = format_currency(rec.estimated_monthly_savings)

    if rec.type == OptimizationType.MODEL_DOWNGRADE.value:
        return (
            f"We'll compare your costs before and after the model switch to verify "
            f"the estimated {savings}/month savings."
        )
    if rec.type == OptimizationType.CACHING.value:
        return (
            f"Track your cache hit rate and compare monthly costs to measure actual savings "
            f"against the {savings}/month estimate."
        )
    if rec.type == OptimizationType.ERROR_REDUCTION.value:
        return "Monitor error rates over the next 30 days to measure the impact on wasted spend."
    return "We'll track your usage patterns to measure the effectiveness of this optimization."
