"""Chat backend proxying a remote LLM with token-budgeted history."""
