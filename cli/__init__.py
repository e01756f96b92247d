"""Terminal client for the NovaChat HTTP API."""
