"""
CSAT owner attribution.

Decides which agent is credited with a ticket's CSAT rating. Three tiers are
tried in order and the first non-empty name wins:

1. The agent/admin with the most public replies. If that agent is the
   protected identity (a supervising account) and any other agent left a
   comment of any kind, the most active of those collaborators is credited
   instead.
2. The author of the last status change to ``solved`` or ``closed``.
3. The ticket's current assignee.

An empty string means no tier produced a name.
"""

import logging
from collections import Counter
from typing import Callable, Iterable, Optional, Protocol

from zendesk_csat_attribution.exceptions import ZendeskAPIError, ZendeskError
from zendesk_csat_attribution.models import (
    AuditEvent,
    Comment,
    Participant,
    TicketAudits,
    TicketComments,
    TicketSnapshot,
)

logger = logging.getLogger(__name__)

IdentityPredicate = Callable[[Participant], bool]


class ActivitySource(Protocol):
    def get_ticket_comments(self, ticket_id: int) -> TicketComments: ...
    def get_ticket_audits(self, ticket_id: int) -> TicketAudits: ...
    def get_ticket(self, ticket_id: int) -> TicketSnapshot: ...
    def get_user(self, user_id: int) -> Participant: ...


def _describe(error: ZendeskError) -> str:
    return error.describe() if isinstance(error, ZendeskAPIError) else str(error)


def never_protected(participant: Participant) -> bool:
    return False


def owner_identity_predicate(name: str | None, email: str | None) -> IdentityPredicate:
    """Build a predicate matching the designated owner by email or name.

    Email matches case-insensitively; name matches case-insensitively after
    trimming. Blank configured values never match.
    """
    owner_email = (email or "").lower()
    owner_name = (name or "").strip().lower()

    def is_owner(participant: Participant) -> bool:
        by_email = bool(owner_email and participant.email) and participant.email.lower() == owner_email
        by_name = bool(owner_name and participant.name) and participant.name.strip().lower() == owner_name
        return by_email or by_name

    return is_owner


def rank_repliers(
    comments: Iterable[Comment],
    participants: dict[int, Participant],
    is_protected_identity: IdentityPredicate = never_protected,
) -> Optional[Participant]:
    """Pick the participant credited by the reply-count tier.

    Returns None when no agent/admin left a public comment.
    """
    public_counts: Counter[int] = Counter()
    total_counts: Counter[int] = Counter()

    for comment in comments:
        author = participants.get(comment.author_id)
        if author is None or author.is_end_user:
            continue
        total_counts[author.id] += 1
        if comment.public:
            public_counts[author.id] += 1

    if not public_counts:
        return None

    top_id = min(public_counts, key=lambda uid: (-public_counts[uid], -total_counts[uid], uid))
    top = participants[top_id]
    if not is_protected_identity(top):
        return top

    collaborators = [uid for uid in total_counts if not is_protected_identity(participants[uid])]
    if not collaborators:
        return top

    collaborator_id = min(collaborators, key=lambda uid: (-total_counts[uid], -public_counts[uid], uid))
    logger.info(
        f"Top public replier {top.name!r} ({public_counts[top_id]} public) is protected; "
        f"crediting collaborator {participants[collaborator_id].name!r} "
        f"({total_counts[collaborator_id]} total, {public_counts[collaborator_id]} public)"
    )
    return participants[collaborator_id]


def last_solver_id(events: Iterable[AuditEvent]) -> Optional[int]:
    """Author of the last status change to solved/closed."""
    solver_id = None
    for event in events:
        if event.is_resolution and event.author_id:
            solver_id = event.author_id
    return solver_id


class AttributionResolver:
    """Resolve the CSAT owner of a ticket through the three fallback tiers."""

    def __init__(self, activity: ActivitySource, is_protected_identity: IdentityPredicate = never_protected):
        self.activity = activity
        self.is_protected_identity = is_protected_identity

    def resolve_owner(self, ticket_id: int) -> str:
        name = self.top_replier(ticket_id)
        if name:
            logger.info(f"Ticket {ticket_id}: CSAT agent (top replier) = {name!r}")
            return name

        name = self.solver(ticket_id)
        if name:
            logger.info(f"Ticket {ticket_id}: no public replies; fallback to solver {name!r}")
            return name

        name = self.assignee(ticket_id)
        if name:
            logger.info(f"Ticket {ticket_id}: no public replies & no solver; fallback to assignee {name!r}")
            return name

        logger.info(f"Ticket {ticket_id}: no replies, no solver, no assignee; leaving blank")
        return ""

    def top_replier(self, ticket_id: int) -> str:
        try:
            activity = self.activity.get_ticket_comments(ticket_id)
        except ZendeskError as e:
            logger.warning(f"Zendesk comments error for ticket {ticket_id}: {_describe(e)}")
            return ""

        chosen = rank_repliers(activity.comments, activity.participants, self.is_protected_identity)
        if chosen is None:
            logger.info(f"No agent public replies found for ticket {ticket_id}")
            return ""
        return chosen.name

    def solver(self, ticket_id: int) -> str:
        try:
            audits = self.activity.get_ticket_audits(ticket_id)
        except ZendeskError as e:
            logger.warning(f"Zendesk audits error for ticket {ticket_id}: {_describe(e)}")
            return ""

        solver_id = last_solver_id(audits.events)
        if solver_id is None:
            logger.info(f"No solver found for ticket {ticket_id}")
            return ""

        known = audits.participants.get(solver_id)
        if known is not None:
            return known.name
        return self._user_name(solver_id)

    def assignee(self, ticket_id: int) -> str:
        try:
            ticket = self.activity.get_ticket(ticket_id)
        except ZendeskError as e:
            logger.warning(f"Zendesk ticket error for {ticket_id}: {_describe(e)}")
            return ""

        if not ticket.assignee_id:
            logger.info(f"Ticket {ticket_id} has no assignee_id")
            return ""

        name = self._user_name(ticket.assignee_id)
        if not name:
            logger.info(f"Assignee {ticket.assignee_id} has no name for ticket {ticket_id}")
        return name

    def _user_name(self, user_id: int) -> str:
        try:
            return self.activity.get_user(user_id).name
        except ZendeskError as e:
            logger.warning(f"Zendesk user error for id {user_id}: {_describe(e)}")
            return ""
