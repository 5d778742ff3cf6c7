"""
Content Brief Generator - Competitor-Driven Content Briefs

Turns a topic into a structured content brief by searching for competing
articles, extracting and analyzing them, and synthesizing the analyses
into a single schema-conformant document.
"""

__version__ = "1.0.0"
__author__ = "Content Brief Team"
