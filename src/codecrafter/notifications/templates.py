"""Email rendering with Jinja2 templates.

EmailRenderer turns workflow events into subject lines and HTML bodies.
Templates live next to this module in ``templates/`` and share a common
layout; autoescaping is on, so user-supplied names and messages are safe
to interpolate.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from codecrafter.config import AppConfig

if TYPE_CHECKING:
    from codecrafter.workflow.service_requests import ServiceRequest

TEMPLATE_DIR = Path(__file__).parent / "templates"


@dataclass(frozen=True)
class RenderedEmail:
    """Subject and HTML body ready for the notifier."""

    subject: str
    body_html: str


class EmailRenderer:
    """Renders transactional emails from Jinja2 templates.

    Attributes:
        app: Application settings providing the brand name and base URL.
        env: Jinja2 Environment loading from TEMPLATE_DIR.
    """

    def __init__(self, app: AppConfig | None = None, template_dir: Path | None = None) -> None:
        self.app = app or AppConfig()
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
            autoescape=select_autoescape(enabled_extensions=("html", "j2")),
            trim_blocks=True,
            lstrip_blocks=True,
            auto_reload=False,
        )

    def _render(self, template_name: str, subject: str, **context: Any) -> RenderedEmail:
        template = self.env.get_template(template_name)
        body = template.render(
            app_name=self.app.name,
            base_url=self.app.base_url,
            year=datetime.now(timezone.utc).year,
            **context,
        )
        return RenderedEmail(subject=subject, body_html=body)

    def welcome(self, user_name: str, role: str) -> RenderedEmail:
        return self._render(
            "welcome.html.j2",
            f"Welcome to {self.app.name}!",
            user_name=user_name,
            role=role,
        )

    def developer_approved(self, developer_name: str) -> RenderedEmail:
        return self._render(
            "developer_approved.html.j2",
            f"Your {self.app.name} Developer Account is Approved!",
            developer_name=developer_name,
        )

    def developer_rejected(self, developer_name: str) -> RenderedEmail:
        return self._render(
            "developer_rejected.html.j2",
            f"Update on Your {self.app.name} Developer Application",
            developer_name=developer_name,
        )

    def project_posted(self, client_name: str, project_name: str, project_id: str) -> RenderedEmail:
        return self._render(
            "project_posted.html.j2",
            f'Your Project "{project_name}" is Live!',
            client_name=client_name,
            project_name=project_name,
            project_id=project_id,
        )

    def new_application(
        self,
        client_name: str,
        developer_name: str,
        project_name: str,
        project_id: str,
        message: str | None = None,
    ) -> RenderedEmail:
        return self._render(
            "new_application.html.j2",
            f'New application for "{project_name}"',
            client_name=client_name,
            developer_name=developer_name,
            project_name=project_name,
            project_id=project_id,
            message=message,
        )

    def application_accepted(self, developer_name: str, project_name: str) -> RenderedEmail:
        return self._render(
            "application_accepted.html.j2",
            f'Your application for "{project_name}" was accepted',
            developer_name=developer_name,
            project_name=project_name,
        )

    def application_rejected(
        self,
        developer_name: str,
        project_name: str,
        reason: str = "declined",
    ) -> RenderedEmail:
        """Render the decline notice.

        Args:
            developer_name: Recipient's name as captured on the application.
            project_name: Project name as captured on the application.
            reason: One of "declined", "superseded", or "cancelled".
        """
        return self._render(
            "application_rejected.html.j2",
            f'Update on your application for "{project_name}"',
            developer_name=developer_name,
            project_name=project_name,
            reason=reason,
        )

    def service_request_admin(self, request: ServiceRequest) -> RenderedEmail:
        return self._render(
            "service_request_admin.html.j2",
            f"New Quick Service Request: {request.name}",
            request=request,
        )

    def service_request_received(self, request: ServiceRequest) -> RenderedEmail:
        return self._render(
            "service_request_received.html.j2",
            f"{self.app.name}: We've Received Your Request!",
            request=request,
        )
