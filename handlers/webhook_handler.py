"""
Webhook handler - Delivers batches of changed entities to the remote endpoint.
"""

from typing import Optional

import requests

from core.errors import DeliveryError
from core.settings import WebhookSettings
from models.batch import Batch
from utils.signing import canonical_json, signature_headers

from .base_handler import BaseHandler


class WebhookHandler(BaseHandler):
    """POSTs signed batches to the configured endpoint, one at a time."""

    error_class = DeliveryError

    def __init__(self, settings: WebhookSettings, session: requests.Session = None):
        super().__init__(settings, session)
        self.endpoint = settings.remote_endpoint

    def get_method_name(self) -> str:
        return "webhook delivery"

    def send_batch(self, batch: Batch, deadline: Optional[float] = None) -> None:
        """
        Serialize, sign and POST a batch.

        Args:
            batch: Batch to deliver
            deadline: time.monotonic() deadline of the current run

        Raises:
            DeliveryError: if the endpoint is unreachable or answers non-2xx
        """
        body = canonical_json(batch.to_payload())
        headers = {'Content-Type': 'application/json'}
        headers.update(signature_headers(self.settings.secret, body))

        self.logger.debug(
            f"Sending batch {batch.batch_id} with {len(batch)} entities"
            f"{' (final)' if batch.is_final else ''}"
        )
        self.request('POST', self.endpoint, deadline=deadline, headers=headers, data=body)
