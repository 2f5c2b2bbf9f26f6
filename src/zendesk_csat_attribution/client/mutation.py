"""Write-side ticket updates for CSAT notes."""
import logging
from typing import Any

from zenpy.lib.api_objects import Comment
from zenpy.lib.api_objects import Ticket as ZenpyTicket
from zenpy.lib.exception import RatelimitBudgetExceeded

from zendesk_csat_attribution.exceptions import (
    ZendeskError,
    ZendeskAPIError,
    ZendeskRateLimitError,
)
from zendesk_csat_attribution.models import CsatNote

logger = logging.getLogger(__name__)

HOLD_STATUS = "hold"


class TicketMutationMixin:
    """Mixin applying a composed CsatNote to a ticket."""

    def _current_tags(self, ticket_id: int) -> list[str]:
        """Existing tags, or an empty list when they cannot be read."""
        try:
            return list(self.get_ticket(ticket_id).tags)
        except ZendeskError as e:
            detail = e.describe() if isinstance(e, ZendeskAPIError) else str(e)
            logger.warning(f"Could not fetch existing tags for ticket {ticket_id}: {detail}")
            return []

    def _update_ticket(self, ticket: ZenpyTicket) -> None:
        """Submit one ticket update through zenpy."""
        try:
            self.client.tickets.update(ticket)
        except RatelimitBudgetExceeded as e:
            raise ZendeskRateLimitError(
                f"Failed to update ticket {ticket.id}: rate limited",
                status_code=429,
                response_body=str(e),
            )
        except Exception as e:
            response: Any = getattr(e, 'response', None)
            raise ZendeskAPIError(
                f"Failed to update ticket {ticket.id}: {str(e)}",
                status_code=getattr(response, 'status_code', None),
                response_body=getattr(response, 'text', None),
            )

    def apply_note(self, ticket_id: int, note: CsatNote) -> bool:
        """Post ``note`` as an internal comment, holding and tagging when asked.

        Returns True when Zendesk accepted the update. Failures are logged and
        reported through the return value only.
        """
        ticket = ZenpyTicket(id=ticket_id)
        ticket.comment = Comment(body=note.body, public=False)

        if note.should_hold:
            tags = self._current_tags(ticket_id)
            if note.tag_to_add and note.tag_to_add not in tags:
                tags.append(note.tag_to_add)
            ticket.status = HOLD_STATUS
            ticket.tags = tags

        try:
            self._update_ticket(ticket)
        except ZendeskAPIError as e:
            logger.error(f"Zendesk CSAT note error for ticket {ticket_id}: {e.describe()}")
            return False

        logger.info(
            f"Zendesk CSAT note added for ticket {ticket_id}. "
            f"hold={note.should_hold}, status={HOLD_STATUS if note.should_hold else 'unchanged'}"
        )
        return True
