"""Study material persistence providers.

SQLiteStudyMaterialStore is the reference IStudyMaterialStore adapter:
materials, flashcards, quiz questions and hashtags in one local SQLite file.
"""

from src.providers.store.sqlite_study_store import SQLiteStudyMaterialStore

__all__ = ["SQLiteStudyMaterialStore"]
