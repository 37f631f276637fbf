"""Logging and metrics for deployhistory."""
