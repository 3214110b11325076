"""CLI command handlers for extmirror."""
