"""Read-side ticket activity: comments, audits, ticket snapshot and users."""
from typing import Any, Dict, Iterable

from zendesk_csat_attribution.exceptions import (
    ZendeskError,
    ZendeskAPIError,
)
from zendesk_csat_attribution.models import (
    AuditEvent,
    Comment,
    Participant,
    TicketAudits,
    TicketComments,
    TicketSnapshot,
)


def _participant_map(users: Iterable[Dict[str, Any]]) -> dict[int, Participant]:
    participants: dict[int, Participant] = {}
    for user in users:
        if user.get('id') is None:
            continue
        participants[user['id']] = Participant.from_api(user)
    return participants


def _change_events(audits: Iterable[Dict[str, Any]]) -> list[AuditEvent]:
    """Flatten audits into Change events, keeping chronological order."""
    events: list[AuditEvent] = []
    for audit in audits:
        author_id = audit.get('author_id')
        for event in audit.get('events') or []:
            field = event.get('field_name') or event.get('field')
            if event.get('type') != 'Change' or not field:
                continue
            events.append(AuditEvent(
                field=field,
                old_value=event.get('previous_value'),
                new_value=event.get('value'),
                author_id=author_id,
            ))
    return events


class TicketActivityMixin:
    """Mixin providing the reads used for CSAT attribution.

    Every method raises a ZendeskError subclass on failure. Non-success
    responses surface as ZendeskAPIError with ``status_code`` and
    ``response_body`` set.
    """

    def get_ticket_comments(self, ticket_id: int) -> TicketComments:
        """Comments on a ticket together with their authors."""
        try:
            comments, users = self._get_paged(
                f"/tickets/{ticket_id}/comments.json",
                'comments',
                {'include': 'users'},
            )
            return TicketComments(
                comments=[Comment.from_api(c) for c in comments],
                participants=_participant_map(users),
            )
        except Exception as e:
            if isinstance(e, ZendeskError):
                raise
            raise ZendeskAPIError(f"Failed to get comments for ticket {ticket_id}: {str(e)}")

    def get_ticket_audits(self, ticket_id: int) -> TicketAudits:
        """Audit trail of a ticket as a flat list of Change events."""
        try:
            audits, users = self._get_paged(
                f"/tickets/{ticket_id}/audits.json",
                'audits',
                {'include': 'users'},
            )
            return TicketAudits(
                events=_change_events(audits),
                participants=_participant_map(users),
            )
        except Exception as e:
            if isinstance(e, ZendeskError):
                raise
            raise ZendeskAPIError(f"Failed to get audits for ticket {ticket_id}: {str(e)}")

    def get_ticket(self, ticket_id: int) -> TicketSnapshot:
        """Query a ticket by its ID."""
        try:
            data = self._get_json(f"/tickets/{ticket_id}.json")
            ticket = data.get('ticket')
            if not ticket:
                raise ZendeskAPIError(f"Ticket {ticket_id} missing from response")
            return TicketSnapshot.from_api(ticket)
        except Exception as e:
            if isinstance(e, ZendeskError):
                raise
            raise ZendeskAPIError(f"Failed to get ticket {ticket_id}: {str(e)}")

    def get_user(self, user_id: int) -> Participant:
        """Look up a single user by ID."""
        try:
            data = self._get_json(f"/users/{user_id}.json")
            user = data.get('user')
            if not user:
                raise ZendeskAPIError(f"User {user_id} missing from response")
            return Participant.from_api(user)
        except Exception as e:
            if isinstance(e, ZendeskError):
                raise
            raise ZendeskAPIError(f"Failed to get user {user_id}: {str(e)}")
