"""ZendeskClient - composed from base and specialized mixins."""
from zendesk_csat_attribution.client.base import ZendeskClientBase
from zendesk_csat_attribution.client.activity import TicketActivityMixin
from zendesk_csat_attribution.client.mutation import TicketMutationMixin


class ZendeskClient(
    ZendeskClientBase,
    TicketActivityMixin,
    TicketMutationMixin,
):
    """
    Main ZendeskClient class composed from base and specialized mixins.

    Reads (comments, audits, tickets, users) come from TicketActivityMixin;
    the CSAT note update comes from TicketMutationMixin.
    """
    pass


__all__ = ['ZendeskClient']
