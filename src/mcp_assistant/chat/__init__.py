"""Interactive chat session and user-facing messages."""
