"""Neural-network layers, losses, augmentation, data loading, a JSON codec and an event-stream server."""

__version__ = "0.1.0"