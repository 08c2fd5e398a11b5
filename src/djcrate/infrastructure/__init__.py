"""Infrastructure layer: HTTP clients, provider adapters, persistence, logging."""
