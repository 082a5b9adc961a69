"""
Notes Client.

Optimistic client-side cache for the notes API.

- api.py: NoteGateway protocol and its httpx implementation
- state.py: immutable cache snapshot and its transitions
- store.py: NoteStore, the object the UI talks to
- autosave.py: debounced, retried persistence
- selection.py: last-selection-wins guard
- factory.py: builds a configured NoteStore
"""
