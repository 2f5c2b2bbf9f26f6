"""Individual tool handler functions."""
import json
from typing import Any
from mcp import types

from zendesk_csat_attribution.exceptions import ZendeskValidationError
from zendesk_csat_attribution.models import CsatNote
from zendesk_csat_attribution.notes import compose_note
from zendesk_csat_attribution.server import Runtime, run_client_call
from zendesk_csat_attribution.sheet import normalize_ticket_id


def _json_response(data: Any) -> list[types.TextContent]:
    """Helper to format JSON response."""
    return [types.TextContent(type="text", text=json.dumps(data, indent=2, ensure_ascii=False))]


def _require_args(arguments: dict[str, Any] | None, *required_keys: str) -> None:
    """Helper to validate required arguments."""
    if not arguments:
        raise ValueError("Missing arguments")
    missing = [key for key in required_keys if key not in arguments or arguments[key] is None]
    if missing:
        raise ValueError(f"Missing required arguments: {', '.join(missing)}")


def _ticket_id(arguments: dict[str, Any]) -> int:
    ticket_id = normalize_ticket_id(arguments["ticket_id"])
    if ticket_id is None:
        raise ZendeskValidationError(f"Invalid ticket_id: {arguments['ticket_id']!r}")
    return ticket_id


def _note_for(runtime: Runtime, arguments: dict[str, Any] | None) -> CsatNote:
    arguments = arguments or {}
    return compose_note(
        arguments.get("csat_rate"),
        arguments.get("nps_rate"),
        arguments.get("comment"),
        very_low_threshold=runtime.settings.very_low_threshold,
        language=runtime.settings.note_language,
    )


async def handle_resolve_csat_agent(runtime: Runtime, arguments: dict[str, Any] | None) -> list[types.TextContent]:
    """Handle resolve_csat_agent tool."""
    _require_args(arguments, "ticket_id")
    ticket_id = _ticket_id(arguments)
    agent_name = await run_client_call(runtime.resolver.resolve_owner, ticket_id)
    return _json_response({"ticket_id": ticket_id, "agent_name": agent_name, "resolved": bool(agent_name)})


async def handle_preview_csat_note(runtime: Runtime, arguments: dict[str, Any] | None) -> list[types.TextContent]:
    """Handle preview_csat_note tool."""
    note = _note_for(runtime, arguments)
    return _json_response(note.model_dump())


async def handle_post_csat_note(runtime: Runtime, arguments: dict[str, Any] | None) -> list[types.TextContent]:
    """Handle post_csat_note tool."""
    _require_args(arguments, "ticket_id")
    ticket_id = _ticket_id(arguments)
    note = _note_for(runtime, arguments)
    applied = await run_client_call(runtime.client.apply_note, ticket_id, note)
    return _json_response({
        "ticket_id": ticket_id,
        "applied": applied,
        "held": note.should_hold,
        "tag_added": note.tag_to_add,
    })
