import asyncio
import logging
from typing import Any, Callable, NamedTuple, TypeVar

from mcp.server import InitializationOptions, NotificationOptions
from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from zendesk_csat_attribution.attribution import AttributionResolver, owner_identity_predicate
from zendesk_csat_attribution.client import ZendeskClient
from zendesk_csat_attribution.config import Settings, configure_logging, get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Runtime(NamedTuple):
    """Components shared by tool handlers for the life of the process."""
    settings: Settings
    client: ZendeskClient
    resolver: AttributionResolver


async def run_client_call(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run blocking Zendesk client calls without stalling the event loop."""
    return await asyncio.to_thread(func, *args, **kwargs)


def build_runtime(settings: Settings) -> Runtime:
    client = ZendeskClient(
        subdomain=settings.zendesk_subdomain,
        email=settings.zendesk_email,
        token=settings.zendesk_api_key,
    )
    resolver = AttributionResolver(
        client,
        is_protected_identity=owner_identity_predicate(settings.owner_name, settings.owner_email),
    )
    return Runtime(settings=settings, client=client, resolver=resolver)


_runtime: Runtime | None = None


def get_runtime() -> Runtime:
    """Instantiate the client lazily so imports succeed in test environments."""
    global _runtime
    if _runtime is None:
        _runtime = build_runtime(get_settings())
    return _runtime


def _reset_runtime_for_tests() -> None:
    """Clear the cached runtime; intended for use in unit tests."""
    global _runtime
    _runtime = None


server = Server("Zendesk CSAT Attribution")


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List available CSAT tools"""
    return [
        types.Tool(
            name="resolve_csat_agent",
            description="Work out which agent should own the CSAT rating of a Zendesk ticket "
                        "(top public replier, then solver, then assignee)",
            inputSchema={
                "type": "object",
                "properties": {
                    "ticket_id": {
                        "type": "integer",
                        "description": "The ID of the ticket to attribute"
                    }
                },
                "required": ["ticket_id"]
            }
        ),
        types.Tool(
            name="preview_csat_note",
            description="Compose the internal CSAT note and hold decision without touching any ticket",
            inputSchema={
                "type": "object",
                "properties": {
                    "csat_rate": {"type": ["number", "string", "null"], "description": "CSAT rate (1-5)"},
                    "nps_rate": {"type": ["number", "string", "null"], "description": "NPS rate (1-10)"},
                    "comment": {"type": ["string", "null"], "description": "Customer comment"},
                },
            }
        ),
        types.Tool(
            name="post_csat_note",
            description="Post the internal CSAT note on a ticket; very low ratings with a comment "
                        "also put the ticket on hold and tag it csat_very_low",
            inputSchema={
                "type": "object",
                "properties": {
                    "ticket_id": {"type": "integer", "description": "The ID of the ticket to annotate"},
                    "csat_rate": {"type": ["number", "string", "null"], "description": "CSAT rate (1-5)"},
                    "nps_rate": {"type": ["number", "string", "null"], "description": "NPS rate (1-10)"},
                    "comment": {"type": ["string", "null"], "description": "Customer comment"},
                },
                "required": ["ticket_id"]
            }
        ),
    ]


@server.call_tool()
async def handle_call_tool(
        name: str,
        arguments: dict[str, Any] | None
) -> list[types.TextContent]:
    """Handle CSAT tool execution requests"""
    try:
        from zendesk_csat_attribution.handlers import TOOL_HANDLERS

        runtime = get_runtime()

        # Dispatch to registered handler
        handler = TOOL_HANDLERS.get(name)
        if handler:
            return await handler(runtime, arguments)

        raise ValueError(f"Unknown tool: {name}")
    except Exception as e:
        logger.error(f"Tool {name} failed: {e}")
        return [types.TextContent(
            type="text",
            text=f"Error: {str(e)}"
        )]


async def main():
    configure_logging()
    logger.info("zendesk csat attribution server started")
    # Run the server using stdin/stdout streams
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream=read_stream,
            write_stream=write_stream,
            initialization_options=InitializationOptions(
                server_name="Zendesk CSAT Attribution",
                server_version="0.1.0",
                capabilities=server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
            ),
        )


if __name__ == "__main__":
    asyncio.run(main())
