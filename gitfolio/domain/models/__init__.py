"""Domain Models: value objects, entities and exceptions shared across layers."""
