"""LLM commentary for workflow runs."""
