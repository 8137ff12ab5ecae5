"""Quick service requests from prospective clients.

A visitor who has no account yet can describe what they need in a short
form. Nothing is stored: the request is validated, forwarded to the
operators' inbox with the requester as reply-to, and acknowledged to the
requester. Both emails are best-effort.
"""

from __future__ import annotations

import enum

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from codecrafter.errors import InvalidServiceRequestError
from codecrafter.notifications.dispatcher import NotificationDispatcher
from codecrafter.notifications.templates import EmailRenderer

logger = structlog.get_logger(__name__)


class BudgetRange(str, enum.Enum):
    """Budget brackets offered on the request form."""

    under_1k = "$500-$1k"
    from_1k = "$1k-$2.5k"
    from_2_5k = "$2.5k-$5k"
    from_5k = "$5k-$10k"
    over_10k = "$10k+"


class UrgencyLevel(str, enum.Enum):
    """How soon the requester needs a developer."""

    low = "Low"
    medium = "Medium"
    high = "High"
    critical = "Critical"


class ServiceRequest(BaseModel):
    """A validated quick service request."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=2, max_length=100)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    description: str = Field(min_length=30, max_length=5000)
    budget: BudgetRange | None = None
    urgency: UrgencyLevel | None = None

    @field_validator("budget", "urgency", mode="before")
    @classmethod
    def blank_is_unspecified(cls, v: object) -> object:
        """The form's "Not Specified" option submits an empty string."""
        if v == "" or v == "none":
            return None
        return v


class ServiceRequestDesk:
    """Forwards quick service requests to the operators.

    Attributes:
        dispatcher: Best-effort email dispatcher.
        renderer: Email template renderer.
        admin_email: Operators' inbox; when unset only the requester is
            acknowledged.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        renderer: EmailRenderer,
        admin_email: str | None,
    ) -> None:
        self.dispatcher = dispatcher
        self.renderer = renderer
        self.admin_email = admin_email
        self.logger = logger.bind(component="ServiceRequestDesk")

    async def submit(
        self,
        name: str,
        email: str,
        description: str,
        budget: BudgetRange | str | None = None,
        urgency: UrgencyLevel | str | None = None,
    ) -> ServiceRequest:
        """Validate a request and send the operator and requester emails.

        Returns:
            The validated ServiceRequest.

        Raises:
            InvalidServiceRequestError: If a field fails validation.
        """
        try:
            request = ServiceRequest(
                name=name,
                email=email,
                description=description,
                budget=budget,
                urgency=urgency,
            )
        except ValidationError as exc:
            raise InvalidServiceRequestError(str(exc)) from exc

        self.logger.info(
            "service_request_received",
            requester=request.email,
            budget=request.budget,
            urgency=request.urgency,
        )

        if self.admin_email:
            forwarded = self.renderer.service_request_admin(request)
            self.dispatcher.dispatch(
                self.admin_email,
                forwarded.subject,
                forwarded.body_html,
                reply_to=request.email,
            )
        else:
            self.logger.warning(
                "notification_skipped",
                requester=request.email,
                reason="no admin inbox configured",
            )

        confirmation = self.renderer.service_request_received(request)
        self.dispatcher.dispatch(request.email, confirmation.subject, confirmation.body_html)
        return request
