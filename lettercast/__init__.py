"""lettercast: double opt-in subscriptions and newsletter broadcasts."""

__version__ = "0.1.0"
