"""HTTP surface of the chat backend."""
