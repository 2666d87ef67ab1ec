"""Persistence layer - database, adapters and sequences."""

from draftforge.persistence.adapter import PersistenceAdapter
from draftforge.persistence.config import DatabaseConfig
from draftforge.persistence.database import Database
from draftforge.persistence.sql import SQLAlchemyAdapter

__all__ = ["Database", "DatabaseConfig", "PersistenceAdapter", "SQLAlchemyAdapter"]
