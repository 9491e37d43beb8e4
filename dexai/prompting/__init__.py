"""Response rendering helpers used by core orchestration."""
