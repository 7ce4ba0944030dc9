"""Domain Layer: models, events and the interfaces infrastructure implements."""
