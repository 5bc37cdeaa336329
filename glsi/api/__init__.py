"""GLSI surface adapter package.

Architectural role:
- Defines the external interaction boundary: CLI, HTTP API and MCP server.
- Performs transport-level validation and response shaping.
- Delegates pipeline work to `glsi.core.engine.SearchEngine`.
"""
