"""
MCP Server for Microsoft Teams
Microsoft Graph tools for AI assistants
"""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("teams-mcp")
except PackageNotFoundError:
    # Package not installed (development mode)
    __version__ = "0.0.0-dev"
