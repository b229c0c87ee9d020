"""
Core agent implementation
Contains the main agent logic, decision-making, and orchestration
"""

from alfred.core.tools import ToolRouter, ToolSpec, create_gala_tools

__all__ = [
    "ToolRouter",
    "ToolSpec",
    "create_gala_tools",
]
