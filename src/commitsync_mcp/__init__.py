"""CommitSync MCP: turns a remote commit feed into agent task checklists."""

__version__ = "0.1.0"
