from .base_consumer import BaseConsumer

__all__ = ["BaseConsumer"]
