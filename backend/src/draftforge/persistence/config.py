"""Database configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy.pool import StaticPool


@dataclass
class DatabaseConfig:
    """Database connection configuration.

    Supports sqlite:/// and postgresql:// URL schemes.
    """

    url: str
    echo: bool = False

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> DatabaseConfig:
        """Create config from environment variables.

        Resolution order:
        1. DRAFTFORGE_DATABASE_URL env var
        2. DATABASE_URL env var (standard)
        3. DRAFTFORGE_DB_PATH env var (converted to sqlite:/// URL)
        4. Default: sqlite:///{base_path}/data/draftforge.db
        """
        echo = os.environ.get("DRAFTFORGE_DB_ECHO", "").lower() in ("1", "true", "yes")

        url = os.environ.get("DRAFTFORGE_DATABASE_URL") or os.environ.get("DATABASE_URL")
        if url:
            return cls(url=url, echo=echo)

        db_path = os.environ.get("DRAFTFORGE_DB_PATH")
        if db_path:
            return cls(url=f"sqlite:///{db_path}", echo=echo)

        if base_path:
            return cls(url=f"sqlite:///{base_path / 'data' / 'draftforge.db'}", echo=echo)

        return cls(url="sqlite:///draftforge.db", echo=echo)

    @classmethod
    def in_memory(cls) -> DatabaseConfig:
        return cls(url="sqlite://")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_postgresql(self) -> bool:
        return self.url.startswith("postgresql")

    @property
    def is_memory(self) -> bool:
        return self.is_sqlite and self.url in ("sqlite://", "sqlite:///:memory:")

    @property
    def sqlalchemy_url(self) -> str:
        """URL suitable for SQLAlchemy engine creation.

        Ensures postgresql:// URLs use the psycopg (v3) driver rather
        than SQLAlchemy's psycopg2 default.
        """
        if self.url.startswith("postgresql://"):
            return self.url.replace("postgresql://", "postgresql+psycopg://", 1)
        return self.url

    def engine_options(self) -> dict[str, Any]:
        """Keyword arguments for sqlalchemy.create_engine()."""
        options: dict[str, Any] = {"echo": self.echo}
        if self.is_memory:
            # One shared connection, otherwise every checkout sees an empty database
            options["poolclass"] = StaticPool
            options["connect_args"] = {"check_same_thread": False}
        return options
