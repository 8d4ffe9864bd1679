"""Feedback board: browse, submit, upvote and discuss product feedback."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from agentcost_dashboard.api_client import AgentCostClient
from agentcost_dashboard.config import FEEDBACK_PAGE_SIZE
from agentcost_dashboard.errors import APIError, parse_api_error
from agentcost_dashboard.models import FeedbackComment, FeedbackItem

logger = logging.getLogger(__name__)

FEEDBACK_TYPES = {
    "feature_request": "Feature request",
    "bug_report": "Bug report",
    "model_request": "Model request",
    "general": "General",
    "security_report": "Security report",
    "performance_issue": "Performance issue",
}

FEEDBACK_STATUSES = {
    "open": "Open",
    "under_review": "Under review",
    "needs_info": "Needs info",
    "in_progress": "In progress",
    "completed": "Completed",
    "shipped": "Shipped",
    "rejected": "Rejected",
    "duplicate": "Duplicate",
}

FEEDBACK_PRIORITIES = ("low", "medium", "high", "critical")
SORT_OPTIONS = ("recent", "popular", "oldest")


@dataclass(frozen=True)
class FeedbackFilters:
    type: str = "all"
    status: str = "all"
    priority: str = "all"
    sort_by: str = "recent"
    search: str = ""


class FeedbackController:
    def __init__(self, client: AgentCostClient, *, page_size: int = FEEDBACK_PAGE_SIZE) -> None:
        self.client = client
        self.page_size = page_size
        self.filters = FeedbackFilters()
        self.page = 0
        self.items: list[FeedbackItem] = []
        self.total = 0
        self.summary: dict = {}
        self.comments: dict[str, list[FeedbackComment]] = {}
        self.error: str | None = None
        self.success_message: str | None = None

    @property
    def total_pages(self) -> int:
        return max(1, -(-self.total // self.page_size))

    def set_filters(self, **changes: str) -> None:
        filters = replace(self.filters, **changes)
        if filters != self.filters:
            self.filters = filters
            self.page = 0

    def fetch(self) -> None:
        try:
            self.items, self.total = self.client.list_feedback(
                type_=self.filters.type,
                status=self.filters.status,
                priority=self.filters.priority,
                sort_by=self.filters.sort_by,
                search=self.filters.search,
                limit=self.page_size,
                offset=self.page * self.page_size,
            )
            self.summary = self.client.get_feedback_summary()
        except APIError as exc:
            logger.warning("Could not load feedback: %s", exc)
            self.error = parse_api_error(exc)
            return
        self.error = None

    def submit(
        self,
        type_: str,
        title: str,
        description: str,
        *,
        model_name: str | None = None,
        model_provider: str | None = None,
        environment: str | None = None,
    ) -> bool:
        if type_ not in FEEDBACK_TYPES:
            self.error = f"Unknown feedback type: {type_}"
            return False
        if not title.strip() or not description.strip():
            self.error = "Please provide both a title and a description."
            return False

        try:
            self.client.create_feedback(
                type_,
                title.strip(),
                description.strip(),
                model_name=model_name or None,
                model_provider=model_provider or None,
                environment=environment or None,
            )
        except APIError as exc:
            self.error = parse_api_error(exc)
            return False

        self.success_message = "Thanks! Your feedback was submitted."
        self.page = 0
        self.fetch()
        return True

    def toggle_upvote(self, feedback_id: str) -> bool:
        try:
            result = self.client.toggle_feedback_upvote(feedback_id) or {}
        except APIError as exc:
            self.error = parse_api_error(exc)
            return False

        added = result.get("action") == "added"
        self.items = [
            replace(item, upvotes=int(result.get("upvotes", item.upvotes)), user_has_upvoted=added)
            if item.id == feedback_id
            else item
            for item in self.items
        ]
        return True

    def load_comments(self, feedback_id: str) -> list[FeedbackComment]:
        try:
            self.comments[feedback_id] = self.client.get_feedback_comments(feedback_id)
        except APIError as exc:
            self.error = parse_api_error(exc)
        return self.comments.get(feedback_id, [])

    def add_comment(self, feedback_id: str, comment: str, user_name: str | None = None) -> bool:
        if not comment.strip():
            return False
        try:
            self.client.add_feedback_comment(feedback_id, comment.strip(), user_name)
        except APIError as exc:
            self.error = parse_api_error(exc)
            return False

        self.items = [
            replace(item, comment_count=item.comment_count + 1) if item.id == feedback_id else item
            for item in self.items
        ]
        self.load_comments(feedback_id)
        return True
