"""Matrix bot answering directory lookups from the MIT Moira web service."""

__version__ = "0.1.0"
