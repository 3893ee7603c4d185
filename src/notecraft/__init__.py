"""Turn personal notes into daily cards, articles and shareable copy."""

__version__ = "0.1.0"
