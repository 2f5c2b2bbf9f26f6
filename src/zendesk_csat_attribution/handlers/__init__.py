"""Tool handler registry."""
from zendesk_csat_attribution.handlers import tools

# Registry mapping tool names to handler functions
TOOL_HANDLERS = {
    "resolve_csat_agent": tools.handle_resolve_csat_agent,
    "preview_csat_note": tools.handle_preview_csat_note,
    "post_csat_note": tools.handle_post_csat_note,
}

__all__ = ['TOOL_HANDLERS']
