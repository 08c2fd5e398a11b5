"""Domain layer: DTOs, ports, exceptions and pure value objects."""
