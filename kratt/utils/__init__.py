"""Shared utilities: structured logging, async subprocess helpers and input validation."""
