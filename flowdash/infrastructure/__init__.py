"""Infrastructure layer: repository implementations (SQL and in-memory)."""
