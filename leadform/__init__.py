"""Lead capture form core: validation, attribution and submission."""

__version__ = "1.0.0"
