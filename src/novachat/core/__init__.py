"""Domain logic: budgeting, model client and chat orchestration."""
