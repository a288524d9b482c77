"""MCP stdio server exposing the engine as tools."""

from driftguard.server.app import ChecklistItemInput, create_server, serve
from driftguard.server.render import render_error, render_result, to_jsonable

__all__ = [
    "ChecklistItemInput",
    "create_server",
    "render_error",
    "render_result",
    "serve",
    "to_jsonable",
]
