"""Chat request orchestration."""
