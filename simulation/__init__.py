"""Synthetic scanner report generation."""
