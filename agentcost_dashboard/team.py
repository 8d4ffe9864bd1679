"""Team page state: project members, invitations and role changes."""

from __future__ import annotations

import json
import logging

from agentcost_dashboard.api_client import AgentCostClient
from agentcost_dashboard.config import STORAGE_USER_KEY
from agentcost_dashboard.errors import APIError, parse_api_error
from agentcost_dashboard.models import PendingInvitation, ProjectMember, Role

logger = logging.getLogger(__name__)

SELF_INVITE_MESSAGE = "You cannot invite yourself to the project."

ROLE_LABELS = {
    Role.ADMIN: "Admin",
    Role.MEMBER: "Member",
    Role.VIEWER: "Viewer",
}

ROLE_DESCRIPTIONS = {
    Role.ADMIN: "Full access to project settings, members, and data",
    Role.MEMBER: "Can view analytics and create events",
    Role.VIEWER: "Read-only access to analytics",
}


class TeamController:
    def __init__(self, client: AgentCostClient) -> None:
        self.client = client
        self.project_id: str | None = None
        self.project_name: str | None = None
        self.members: list[ProjectMember] = []
        self.pending_invitations: list[PendingInvitation] = []
        self.current_user_id: str | None = None
        self.current_user_email: str | None = None
        self.current_user_role: Role | None = None
        self.error: str | None = None
        self.invite_error: str | None = None
        self.success_message: str | None = None

    @property
    def can_manage_members(self) -> bool:
        return self.current_user_role is Role.ADMIN

    def can_edit_role(self, member_role: Role) -> bool:
        # Admins may change any role, other admins included.
        return self.can_manage_members

    def fetch(self) -> None:
        try:
            project = self.client.get_project()
            self.project_id = project.id
            self.project_name = project.name
            self.members = self.client.get_project_members(project.id)
        except APIError as exc:
            logger.warning("Could not load team: %s", exc)
            self.error = parse_api_error(exc)
            return

        self._resolve_current_user()

        try:
            self.pending_invitations = self.client.get_pending_invitations()
        except APIError as exc:
            logger.info("No pending invitations loaded: %s", exc)

        self.error = None

    def invite(self, email: str, role: Role = Role.MEMBER) -> bool:
        email = email.strip()
        if not self.project_id or not email:
            return False

        if email.lower() == (self.current_user_email or ""):
            self.invite_error = SELF_INVITE_MESSAGE
            return False

        self.invite_error = None
        try:
            self.client.invite_member(self.project_id, email, role)
        except APIError as exc:
            self.invite_error = parse_api_error(exc)
            return False

        self.success_message = f"Invitation sent to {email}"
        self.fetch()
        return True

    def update_role(self, user_id: str, role: Role) -> bool:
        if not self.project_id:
            return False
        return self._mutate(
            lambda: self.client.update_member_role(self.project_id, user_id, role),
            "Role updated successfully",
        )

    def remove_member(self, user_id: str) -> bool:
        if not self.project_id:
            return False
        if not self._mutate(lambda: self.client.remove_member(self.project_id, user_id), "Member removed successfully"):
            return False
        self.members = [member for member in self.members if member.user_id != user_id]
        return True

    def accept_invitation(self, project_id: str) -> bool:
        return self._resolve_invitation(project_id, self.client.accept_invitation, "Invitation accepted!")

    def decline_invitation(self, project_id: str) -> bool:
        return self._resolve_invitation(project_id, self.client.decline_invitation, "Invitation declined")

    def leave_project(self) -> bool:
        if not self.project_id:
            return False
        try:
            self.client.leave_project(self.project_id)
        except APIError as exc:
            self.error = parse_api_error(exc)
            return False

        self.success_message = f"You left {self.project_name or 'the project'}"
        self.project_id = None
        self.project_name = None
        self.members = []
        self.current_user_role = None
        return True

    def _resolve_invitation(self, project_id, action, message: str) -> bool:
        before = self.pending_invitations
        self.pending_invitations = [inv for inv in before if inv.project_id != project_id]
        if not self._mutate(lambda: action(project_id), message):
            self.pending_invitations = before
            return False
        return True

    def _mutate(self, call, message: str) -> bool:
        try:
            call()
        except APIError as exc:
            self.error = parse_api_error(exc)
            return False

        self.success_message = message
        self.fetch()
        return True

    def _resolve_current_user(self) -> None:
        raw_user = self.client.storage.get_item(STORAGE_USER_KEY)
        if not raw_user:
            return

        try:
            user = json.loads(raw_user)
        except ValueError:
            logger.warning("Stored user is not valid JSON")
            return

        self.current_user_id = user.get("id")
        email = user.get("email")
        self.current_user_email = email.lower() if email else None

        member = next((m for m in self.members if m.user_id == self.current_user_id), None)
        if member is None:
            # The members endpoint answers 403 for outsiders, so an unlisted
            # viewer of this page is the project owner.
            self.current_user_role = Role.ADMIN
        else:
            self.current_user_role = Role.ADMIN if member.is_owner else member.role
