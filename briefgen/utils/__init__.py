"""
Shared utilities: configuration, logging, health checks and parsing helpers.
"""
