"""
Core Module
===========

Storage components for TodoBook API:
- document_store: document store protocol with MongoDB and in-memory backends
"""

from core.document_store import (
    DocumentStoreProtocol,
    InMemoryDocumentStore,
    MongoDocumentStore,
    create_document_store,
)

__all__ = [
    'DocumentStoreProtocol',
    'InMemoryDocumentStore',
    'MongoDocumentStore',
    'create_document_store',
]
