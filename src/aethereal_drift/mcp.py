"""MCP server for the Aethereal Drift engine.

Exposes transmission generation and the transmission log through Model
Context Protocol tools.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from datetime import datetime, timezone
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from aethereal_drift.engine import DriftEngine
from aethereal_drift.errors import DriftError
from aethereal_drift.logwriter import export_json, export_jsonl, export_text
from aethereal_drift.models import DriftConfig, Position, TransmissionStyle
from aethereal_drift.wikipedia import WikipediaAnchorSource

logger = logging.getLogger(__name__)

# Global engine instance (initialized on first call)
_engine: DriftEngine | None = None


def config_from_env() -> DriftConfig:
    """Build engine configuration from DRIFT_* environment variables."""
    max_in_flight = os.getenv("DRIFT_MAX_IN_FLIGHT")
    return DriftConfig(
        db_path=os.getenv("DRIFT_DB_PATH", "drift.db"),
        text_backend=os.getenv("DRIFT_TEXT_BACKEND", "local"),
        openai_model=os.getenv("DRIFT_OPENAI_MODEL", "gpt-4o-mini"),
        local_model=os.getenv(
            "DRIFT_LOCAL_MODEL", "HuggingFaceTB/SmolLM-360M-Instruct"
        ),
        embedding_backend=os.getenv("DRIFT_EMBEDDING_BACKEND", "local"),
        embedding_model=os.getenv("DRIFT_EMBEDDING_MODEL", "all-MiniLM-L6-v2"),
        vector_dimensions=int(os.getenv("DRIFT_VECTOR_DIMENSIONS", "384")),
        max_in_flight=float(max_in_flight) if max_in_flight else None,
    )


def get_engine() -> DriftEngine:
    """Get or initialize the engine instance."""
    global _engine
    if _engine is None:
        engine = DriftEngine(config_from_env())
        engine.anchor_source = WikipediaAnchorSource(
            engine.store, max_age=engine.config.anchor_cache_max_age
        )
        _engine = engine
    return _engine


server = Server("aethereal_drift")

_STYLES = [s.value for s in TransmissionStyle]

_POSITION_PROPERTIES = {
    "latitude": {"type": "number", "description": "Observer latitude"},
    "longitude": {"type": "number", "description": "Observer longitude"},
}


# -------------------------------------------------------------------------
# Tool Definitions
# -------------------------------------------------------------------------

TOOLS = [
    Tool(
        name="generate_transmission",
        description="Generate a transmission from the phantom location near a position",
        inputSchema={
            "type": "object",
            "properties": {
                **_POSITION_PROPERTIES,
                "style": {
                    "type": "string",
                    "enum": _STYLES,
                    "description": "Narrative style (random if omitted)",
                },
            },
            "required": ["latitude", "longitude"],
        },
    ),
    Tool(
        name="nearby_anchors",
        description="List documented places near a position, nearest first",
        inputSchema={
            "type": "object",
            "properties": {
                **_POSITION_PROPERTIES,
                "radius": {
                    "type": "integer",
                    "description": "Search radius in meters (max 10000)",
                },
            },
            "required": ["latitude", "longitude"],
        },
    ),
    Tool(
        name="recent_transmissions",
        description="List the most recent transmissions, newest first",
        inputSchema={
            "type": "object",
            "properties": {
                "limit": {"type": "integer", "default": 50},
            },
        },
    ),
    Tool(
        name="search_transmissions",
        description="Find past transmissions whose text resembles a query",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {"type": "string"},
                "limit": {"type": "integer", "default": 5},
            },
            "required": ["query"],
        },
    ),
    Tool(
        name="clear_transmissions",
        description="Delete every stored transmission",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="get_settings",
        description="Get the current drift settings",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="update_settings",
        description="Update drift settings",
        inputSchema={
            "type": "object",
            "properties": {
                "radar_range": {"type": "integer", "description": "Meters"},
                "transmission_interval": {"type": "integer", "description": "Seconds"},
                "static_intensity": {"type": "number"},
                "voice_volume": {"type": "number"},
                "auto_play": {"type": "boolean"},
                "movement_threshold": {"type": "number", "description": "Meters"},
            },
        },
    ),
    Tool(
        name="export_log",
        description="Export the transmission log",
        inputSchema={
            "type": "object",
            "properties": {
                "format": {
                    "type": "string",
                    "enum": ["text", "json", "jsonl"],
                    "default": "text",
                },
            },
        },
    ),
]


# -------------------------------------------------------------------------
# MCP Handlers
# -------------------------------------------------------------------------


def _text(text: str) -> list[TextContent]:
    return [TextContent(type="text", text=text)]


def _position(arguments: dict[str, Any]) -> Position:
    return Position(
        latitude=float(arguments["latitude"]),
        longitude=float(arguments["longitude"]),
    )


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return TOOLS


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    engine = get_engine()

    try:
        if name == "generate_transmission":
            engine.update_position(_position(arguments))
            await engine.refresh_anchors()
            style = arguments.get("style")
            transmission = await engine.generate(
                style=TransmissionStyle(style) if style else None
            )
            return _text(json.dumps(transmission.to_dict(), indent=2))

        elif name == "nearby_anchors":
            anchors = await engine.anchor_source.nearby(
                _position(arguments),
                radius=arguments.get("radius", engine.settings.radar_range),
            )
            result = [
                {"id": a.id, "title": a.title, "distance": round(a.distance)}
                for a in anchors
            ]
            return _text(json.dumps(result, indent=2))

        elif name == "recent_transmissions":
            transmissions = engine.recent_transmissions(arguments.get("limit", 50))
            return _text(json.dumps([t.to_dict() for t in transmissions], indent=2))

        elif name == "search_transmissions":
            transmissions = engine.search_transmissions(
                arguments["query"], arguments.get("limit", 5)
            )
            return _text(json.dumps([t.to_dict() for t in transmissions], indent=2))

        elif name == "clear_transmissions":
            engine.clear_transmissions()
            return _text("Cleared transmissions")

        elif name == "get_settings":
            return _text(json.dumps(vars(engine.settings), indent=2))

        elif name == "update_settings":
            settings = engine.update_settings(**arguments)
            return _text(json.dumps(vars(settings), indent=2))

        elif name == "export_log":
            fmt = arguments.get("format", "text")
            transmissions = engine.store.all_transmissions()
            now = datetime.now(timezone.utc)
            if fmt == "json":
                return _text(export_json(transmissions, now))
            if fmt == "jsonl":
                return _text(export_jsonl(transmissions))
            return _text(export_text(transmissions, now))

        else:
            return _text(f"Unknown tool: {name}")

    except (DriftError, ValueError, KeyError) as e:
        logger.warning("Tool %s failed: %s", name, e)
        return _text(f"Error: {e}")


# -------------------------------------------------------------------------
# Main Entry Point
# -------------------------------------------------------------------------


async def main():
    """Run the MCP server."""
    logging.basicConfig(level=os.getenv("DRIFT_LOG_LEVEL", "INFO"))
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def run() -> None:
    """Console entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
