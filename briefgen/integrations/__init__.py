"""
External service integrations for the brief generator.

This package contains clients for the generative-model provider, the
web search provider, the content extraction provider, Supabase storage
and outbound email notifications.
"""
