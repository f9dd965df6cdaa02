"""Boundary adapters translating wire payloads to and from the domain model."""
