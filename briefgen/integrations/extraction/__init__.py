"""
Readable-text extraction integration module.
"""

from .jina_reader import JinaReaderClient

__all__ = ['JinaReaderClient']
