"""
HTTP API for the brief generator.
"""
