"""Infrastructure: logging, tracing, storage and concurrency plumbing."""
