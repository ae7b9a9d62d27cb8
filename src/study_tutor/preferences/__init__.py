"""Stored student preferences: API key and colour theme."""
