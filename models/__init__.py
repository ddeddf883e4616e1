"""
Models package - Data classes for the application.
"""

from models.entity import EntityRecord, EntityPage
from models.batch import Batch
from models.filters import EntityFilter, Conjunction, KindFilter, FieldFilter, parse_filter
from models.remote_config import RemoteConfig
from models.run_result import RunResult

__all__ = [
    'EntityRecord',
    'EntityPage',
    'Batch',
    'EntityFilter',
    'Conjunction',
    'KindFilter',
    'FieldFilter',
    'parse_filter',
    'RemoteConfig',
    'RunResult',
]
