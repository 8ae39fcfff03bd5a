"""World Chat: API gateway and chat-session client for the AI backend."""

__version__ = "1.0.0"
