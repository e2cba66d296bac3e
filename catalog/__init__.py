"""Media Catalog — moderated catalog API for user-submitted movies and TV shows."""

__version__ = "0.1.0"
