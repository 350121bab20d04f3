"""Formatting and progress helpers."""
