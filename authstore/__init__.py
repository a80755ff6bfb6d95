"""User credential store with interchangeable storage backends."""

__version__ = "0.1.0"
