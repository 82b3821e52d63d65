"""SQL schema migrations for the config store."""

from .runner import MigrationRunner

__all__ = ["MigrationRunner"]
