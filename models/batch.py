"""
Batch model.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any

from models.entity import EntityRecord


@dataclass
class Batch:
    """A group of changed entities delivered in one request."""

    batch_id: int
    entities: List[EntityRecord] = field(default_factory=list)
    is_final: bool = False

    def __len__(self) -> int:
        return len(self.entities)

    def to_payload(self) -> Dict[str, Any]:
        """Wire representation sent to the remote endpoint."""
        return {
            'batchId': self.batch_id,
            'entities': [entity.to_dict() for entity in self.entities],
            'isFinalBatch': self.is_final,
        }
