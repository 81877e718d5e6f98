"""Shared filesystem and logging helpers."""
