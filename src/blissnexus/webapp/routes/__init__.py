"""Webapp routes."""
