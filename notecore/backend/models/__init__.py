"""
Database models.

Importing this package registers every table on Base.metadata.
"""

from notecore.backend.models.base import Base
from notecore.backend.models.folder import Folder
from notecore.backend.models.note import Note
from notecore.backend.models.tag import NoteTag, Tag

__all__ = ["Base", "Folder", "Note", "NoteTag", "Tag"]
