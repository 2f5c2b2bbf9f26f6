"""
Ticket activity and survey models.

Everything here is a frozen pydantic model built from raw Zendesk payloads
or spreadsheet cells. Nothing in this module performs I/O.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

END_USER_ROLE = "end-user"
RESOLVED_STATUSES = frozenset({"solved", "closed"})


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Participant(_Frozen):
    """A Zendesk user taking part in a ticket"""
    id: int
    name: str = ""
    email: str = ""
    role: str = ""

    @property
    def is_end_user(self) -> bool:
        return self.role == END_USER_ROLE

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Participant":
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            email=data.get("email") or "",
            role=data.get("role") or "",
        )


class Comment(_Frozen):
    """Ticket comment; ``public`` comments are visible to the requester"""
    author_id: Optional[int] = None
    public: bool = True
    body: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Comment":
        return cls(
            author_id=data.get("author_id"),
            public=bool(data.get("public")),
            body=data.get("body") or "",
        )


class AuditEvent(_Frozen):
    """A single ``Change`` event taken from a ticket audit"""
    field: str
    old_value: Any = None
    new_value: Any = None
    author_id: Optional[int] = None

    @property
    def is_resolution(self) -> bool:
        return self.field == "status" and self.new_value in RESOLVED_STATUSES


class TicketComments(_Frozen):
    comments: list[Comment] = Field(default_factory=list)
    participants: dict[int, Participant] = Field(default_factory=dict)


class TicketAudits(_Frozen):
    events: list[AuditEvent] = Field(default_factory=list)
    participants: dict[int, Participant] = Field(default_factory=dict)


class TicketSnapshot(_Frozen):
    """The handful of ticket fields this project reads"""
    id: int
    status: Optional[str] = None
    assignee_id: Optional[int] = None
    tags: list[str] = Field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "TicketSnapshot":
        return cls(
            id=data["id"],
            status=data.get("status"),
            assignee_id=data.get("assignee_id"),
            tags=list(data.get("tags") or []),
        )


class SurveyResponse(_Frozen):
    """CSAT/NPS answers and free-text comment as read from a sheet row"""
    csat_rate: Any = None
    nps_rate: Any = None
    comment: Any = None


class CsatNote(_Frozen):
    """Internal note to post on a ticket, plus the hold decision"""
    body: str
    should_hold: bool = False
    tag_to_add: Optional[str] = None
