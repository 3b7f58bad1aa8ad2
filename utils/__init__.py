"""Shared helpers: logging, exceptions, dates and validation."""
