"""Upstream data-provider access."""
