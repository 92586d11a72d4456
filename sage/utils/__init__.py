"""Shared utilities for structured logging."""
