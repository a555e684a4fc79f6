"""Example of using Aethereal Drift through MCP.

Starts the server over stdio and asks it for a transmission near
Trafalgar Square.
"""

import asyncio

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client


async def run_example():
    """Run example MCP interactions."""
    server_params = StdioServerParameters(
        command="aethereal-drift-mcp",
        env={
            "DRIFT_DB_PATH": "example_drift.db",
            "DRIFT_TEXT_BACKEND": "openai",
            "DRIFT_EMBEDDING_BACKEND": "local",
        },
    )

    async with stdio_client(server_params) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()

            tools = await session.list_tools()
            print(f"Available tools: {[t.name for t in tools.tools]}")

            print("\n=== Nearby anchors ===")
            result = await session.call_tool(
                "nearby_anchors",
                {"latitude": 51.5074, "longitude": -0.1278, "radius": 500},
            )
            print(result.content[0].text)

            print("\n=== Transmission ===")
            result = await session.call_tool(
                "generate_transmission",
                {"latitude": 51.5074, "longitude": -0.1278, "style": "field_note"},
            )
            print(result.content[0].text)

            print("\n=== Log ===")
            result = await session.call_tool("export_log", {"format": "text"})
            print(result.content[0].text)


if __name__ == "__main__":
    asyncio.run(run_example())
