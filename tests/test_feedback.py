from agentcost_dashboard.errors import APIError
from agentcost_dashboard.feedback import FeedbackController
from agentcost_dashboard.models import FeedbackComment, FeedbackItem


class FakeClient:
    def __init__(self, total: int = 45) -> None:
        self.total = total
        self.items = [FeedbackItem(id="f1", type="feature_request", title="Dark mode", description="Please", upvotes=3)]
        self.calls: list[tuple] = []
        self.fail_on: set[str] = set()
        self.upvote_result = {"action": "added", "upvotes": 4}

    def _record(self, name: str, *args, **kwargs) -> None:
        self.calls.append((name, args, kwargs))
        if name in self.fail_on:
            raise APIError(f"API Error: 500 Internal Server Error - {name} failed", status_code=500)

    def list_feedback(self, **kwargs):
        self._record("list_feedback", **kwargs)
        return list(self.items), self.total

    def get_feedback_summary(self) -> dict:
        self._record("get_feedback_summary")
        return {"total": self.total}

    def create_feedback(self, type_, title, description, **kwargs) -> dict:
        self._record("create_feedback", type_, title, description, **kwargs)
        return {"id": "f2"}

    def toggle_feedback_upvote(self, feedback_id: str) -> dict:
        self._record("toggle_feedback_upvote", feedback_id)
        return self.upvote_result

    def get_feedback_comments(self, feedback_id: str) -> list[FeedbackComment]:
        self._record("get_feedback_comments", feedback_id)
        return [FeedbackComment(id="c1", comment="Agreed")]

    def add_feedback_comment(self, feedback_id, comment, user_name=None) -> dict:
        self._record("add_feedback_comment", feedback_id, comment, user_name)
        return {}

    def last_list_kwargs(self) -> dict:
        return [call for call in self.calls if call[0] == "list_feedback"][-1][2]


def test_fetch_passes_filters_and_offset() -> None:
    client = FakeClient()
    controller = FeedbackController(client)
    controller.set_filters(type="bug_report", search="latency")
    controller.page = 2

    controller.fetch()

    kwargs = client.last_list_kwargs()
    assert kwargs["type_"] == "bug_report"
    assert kwargs["search"] == "latency"
    assert kwargs["limit"] == 20
    assert kwargs["offset"] == 40
    assert controller.total == 45
    assert controller.total_pages == 3
    assert controller.summary == {"total": 45}


def test_changing_filters_resets_page() -> None:
    controller = FeedbackController(FakeClient())
    controller.page = 3

    controller.set_filters(sort_by="recent")
    assert controller.page == 3

    controller.set_filters(sort_by="popular")
    assert controller.page == 0


def test_total_pages_never_below_one() -> None:
    controller = FeedbackController(FakeClient(total=0))
    controller.fetch()
    assert controller.total_pages == 1


def test_fetch_failure_sets_error() -> None:
    client = FakeClient()
    client.fail_on.add("list_feedback")
    controller = FeedbackController(client)

    controller.fetch()

    assert controller.error
    assert controller.items == []


def test_submit_validates_and_trims() -> None:
    client = FakeClient()
    controller = FeedbackController(client)

    assert controller.submit("praise", "Hi", "There") is False
    assert controller.error == "Unknown feedback type: praise"
    assert controller.submit("general", "  ", "body") is False

    assert controller.submit("model_request", " Add Claude ", " please ", model_name="claude") is True
    created = [call for call in client.calls if call[0] == "create_feedback"][0]
    assert created[1] == ("model_request", "Add Claude", "please")
    assert created[2]["model_name"] == "claude"
    assert created[2]["environment"] is None
    assert controller.success_message == "Thanks! Your feedback was submitted."


def test_toggle_upvote_updates_item() -> None:
    client = FakeClient()
    controller = FeedbackController(client)
    controller.fetch()

    assert controller.toggle_upvote("f1") is True
    assert controller.items[0].upvotes == 4
    assert controller.items[0].user_has_upvoted is True

    client.upvote_result = {"action": "removed", "upvotes": 3}
    controller.toggle_upvote("f1")
    assert controller.items[0].upvotes == 3
    assert controller.items[0].user_has_upvoted is False


def test_add_comment_bumps_count_and_reloads() -> None:
    client = FakeClient()
    controller = FeedbackController(client)
    controller.fetch()

    assert controller.add_comment("f1", "   ") is False
    assert controller.add_comment("f1", " Agreed ", "Ada") is True

    assert ("add_feedback_comment", ("f1", "Agreed", "Ada"), {}) in client.calls
    assert controller.items[0].comment_count == 1
    assert controller.comments["f1"][0].comment == "Agreed"
