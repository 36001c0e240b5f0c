"""Observability: structured logging for the event log.

Uses structlog, configured once per process via ``setup_logging``.
"""
