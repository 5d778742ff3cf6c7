"""
Core domain layer: data models, collaborator interfaces and the
brief-generation pipeline.
"""
