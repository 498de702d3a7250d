"""Textual terminal board for taskly."""
