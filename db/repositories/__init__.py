"""
Repository layer exports.
"""

from db.repositories.import_run_repository import ImportRunRepository

__all__ = [
    "ImportRunRepository",
]
