"""Entry point for running db_session_mcp as a module."""

from db_session_mcp.server import cli_entry

if __name__ == "__main__":
    cli_entry()
