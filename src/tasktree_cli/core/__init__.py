"""Core in-memory structures."""
