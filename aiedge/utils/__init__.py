"""Shared helpers for configuration and parameter handling."""
