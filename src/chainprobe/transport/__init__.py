"""Tool-call transports."""
