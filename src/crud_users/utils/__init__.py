"""Shared helpers: payload validation and logging setup."""
