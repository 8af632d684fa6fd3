"""Batch completion of missing translations through an external service."""
