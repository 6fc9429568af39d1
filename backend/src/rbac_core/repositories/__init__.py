"""Repositories package."""
