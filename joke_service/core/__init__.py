"""
Core components for the persistence/ETL service.
"""

from .etl_worker import ETLWorker

__all__ = ["ETLWorker"]
