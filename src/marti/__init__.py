"""Geotagged sample records backed by a MongoDB collection."""

__version__ = "0.1.0"
