"""View components for the netdash screen.

Contains:
- dashboard: entity list, interfaces panel, footer, password prompt
- graph: block-character bandwidth graph
"""
from app.views.dashboard import (
    render_entity_list,
    render_footer,
    render_interfaces,
    render_password_prompt,
)
from app.views.graph import render_graph

__all__ = [
    "render_entity_list",
    "render_footer",
    "render_interfaces",
    "render_password_prompt",
    "render_graph",
]
