"""Shared helpers: git plumbing and file writes."""
