"""Core infrastructure: configuration, logging, persistence and errors."""
