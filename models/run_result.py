"""
Run Result model.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class RunResult:
    """Summary of one processing run."""

    batch_id: Optional[int] = None
    fetched: int = 0
    changed: int = 0
    sent: int = 0
    batches: int = 0
    pages: int = 0
    cache_reset: bool = False
    skipped: bool = False
    error: Optional[str] = None
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    def __str__(self) -> str:
        if self.skipped:
            return f"[SKIPPED] {self.error or 'run not started'}"

        status = "OK" if not self.error else f"ERROR: {self.error}"
        return (
            f"[{status}] batch {self.batch_id}\n"
            f"  Fetched:  {self.fetched} entities in {self.pages} pages\n"
            f"  Changed:  {self.changed}\n"
            f"  Sent:     {self.sent} entities in {self.batches} batches"
            f"{'  (cache reset)' if self.cache_reset else ''}"
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'batch_id': self.batch_id,
            'fetched': self.fetched,
            'changed': self.changed,
            'sent': self.sent,
            'batches': self.batches,
            'pages': self.pages,
            'cache_reset': self.cache_reset,
            'skipped': self.skipped,
            'error': self.error,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'finished_at': self.finished_at.isoformat() if self.finished_at else None,
            'status': self.status,
        }

    @property
    def is_success(self) -> bool:
        """Check if the run finished without an error."""
        return self.error is None and not self.skipped

    @property
    def status(self) -> str:
        """Get status string."""
        if self.skipped:
            return 'skipped'
        return 'error' if self.error else 'ok'
