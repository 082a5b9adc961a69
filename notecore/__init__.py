"""
Note retrieval and synchronization core.

- backend/: FastAPI service, database, search index, configuration
- client/: optimistic client cache with debounced autosave
"""
