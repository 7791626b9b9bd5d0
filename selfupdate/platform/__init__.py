"""Platform-specific filesystem helpers."""
