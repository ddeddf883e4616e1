"""
Processor - Pushes changed catalog entities to the webhook receiver.
"""

import logging
from datetime import datetime
from typing import Optional

import requests

from core.differ import BatchIdGenerator, BatchSequencer, diff_entities, iter_pages
from core.errors import AuthError, FetchError, RunTimeoutError, WebhookError
from core.guard import RunGuard
from core.scheduler import IntervalScheduler
from core.settings import WebhookSettings
from core.store import JsonFileStore, KeyValueStore
from core.tag_cache import TagCache
from handlers.auth_handler import StaticTokenProvider
from handlers.catalog_handler import CatalogHandler
from handlers.remote_config_handler import RemoteConfigHandler
from handlers.webhook_handler import WebhookHandler
from models.filters import EntityFilter
from models.remote_config import RemoteConfig
from models.run_result import RunResult


class WebhookProcessor:
    """Runs change detection against the catalog and delivers the changes."""

    def __init__(
        self,
        settings: WebhookSettings,
        store: KeyValueStore = None,
        session: requests.Session = None,
        catalog: CatalogHandler = None,
        token_provider: StaticTokenProvider = None,
        scheduler: IntervalScheduler = None,
        batch_ids: BatchIdGenerator = None
    ):
        """
        Initialize the processor.

        Args:
            settings: Resolved webhook settings
            store: Where the etag cache is persisted
            session: HTTP session shared by all handlers
            catalog: Catalog client (built from settings if omitted)
            token_provider: Source of the catalog credential
            scheduler: Interval driver used by start()
            batch_ids: Batch id source
        """
        self.settings = settings
        self.logger = logging.getLogger('WebhookProcessor')
        self.store = store or JsonFileStore(settings.cache_file)
        self.session = session or requests.Session()
        self.catalog = catalog or CatalogHandler(settings, self.session)
        self.token_provider = token_provider or StaticTokenProvider(settings)
        self.remote_config = RemoteConfigHandler(settings, self.session)
        self.webhook = WebhookHandler(settings, self.session)
        self.scheduler = scheduler
        self.batch_ids = batch_ids or BatchIdGenerator()
        self.guard = RunGuard()

    def start(self) -> bool:
        """
        Schedule periodic runs.

        Returns:
            True if runs were scheduled, False if no endpoint is configured
        """
        if not self.settings.is_configured:
            self.logger.warning("Catalog webhook not configured, skipping")
            return False

        minutes = self.settings.interval_minutes
        self.logger.info(
            f"Catalog webhook started and reporting to {self.settings.remote_endpoint} "
            f"every {minutes} minute{'s' if minutes > 1 else ''}"
        )

        if self.scheduler is None:
            self.scheduler = IntervalScheduler()
        self.scheduler.schedule(minutes, self.settings.timeout_seconds, self.process_entities)
        return True

    def process_entities(self, deadline: Optional[float] = None) -> RunResult:
        """
        Run one full pass: probe, diff every catalog page, deliver changes.

        Never raises. A tick that arrives while a run is in progress is dropped.

        Args:
            deadline: time.monotonic() value after which the run is abandoned

        Returns:
            RunResult describing the pass
        """
        if not self.settings.is_configured:
            return RunResult(skipped=True, error='remote endpoint not configured')

        if not self.guard.acquire():
            self.logger.info("Previous interval still processing, skipping this run")
            return RunResult(skipped=True, error='previous run still in progress')

        result = RunResult()
        try:
            self._run(result, deadline)
        except AuthError as e:
            result.error = str(e)
            self.logger.error(str(e))
        except WebhookError as e:
            result.error = str(e)
            self.logger.error(f"Error processing entities: {e}")
        except Exception as e:
            result.error = f"{type(e).__name__}: {e}"
            self.logger.exception(f"Error in process_entities: {e}")
        finally:
            result.finished_at = datetime.now()
            self.guard.release()

        return result

    def effective_filter(self, remote_config: RemoteConfig) -> EntityFilter:
        """Static filter, replaced by the remote one if sent, narrowed by the allow list."""
        entity_filter = self.settings.entity_filter
        if remote_config.entity_filter is not None:
            entity_filter = remote_config.entity_filter

        if self.settings.allow:
            self.logger.info(f"Catalog webhook applied allow list of {self.settings.allow}")
            entity_filter = entity_filter.with_allowed_kinds(self.settings.allow)
        return entity_filter

    def _run(self, result: RunResult, deadline: Optional[float]) -> None:
        remote_config = self.remote_config.probe(deadline)

        tag_cache = TagCache(self.store)
        if remote_config.reset_cache:
            tag_cache.reset()
            result.cache_reset = True

        token = self.token_provider.get_token('catalog')
        if not token:
            raise AuthError("No token obtained from auth")

        entity_filter = self.effective_filter(remote_config)
        tag_cache.load()
        try:
            self._process_pages(result, tag_cache, entity_filter, token, deadline)
        finally:
            # Persisted even when the run stopped part way
            tag_cache.save()
            tag_cache.release()
            self.logger.info(
                f"Catalog webhook processed {result.sent} changed out of {result.fetched} entities"
            )

    def _process_pages(
        self,
        result: RunResult,
        tag_cache: TagCache,
        entity_filter: EntityFilter,
        token: str,
        deadline: Optional[float]
    ) -> None:
        page_size = self.settings.entity_request_size
        result.batch_id = self.batch_ids.next_id()
        sequencer = BatchSequencer(
            result.batch_id,
            self.settings.entity_send_size,
            lambda batch: self.webhook.send_batch(batch, deadline),
        )

        def fetch_page(offset: int):
            return self.catalog.fetch_entities(entity_filter, page_size, offset, token, deadline)

        try:
            for page in iter_pages(fetch_page, page_size):
                result.pages += 1
                result.fetched += page.count
                changed = diff_entities(page.items, tag_cache)
                result.changed += len(changed)
                sequencer.add(changed)
            sequencer.finish()
        except FetchError:
            # Tags of the held entities are cached already, so send them now
            try:
                sequencer.flush()
            except WebhookError as flush_error:
                self.logger.warning(f"Could not flush pending batch: {flush_error}")
                self._forget_undelivered(sequencer, tag_cache)
            raise
        except RunTimeoutError:
            self._forget_undelivered(sequencer, tag_cache)
            raise
        finally:
            result.sent, result.batches = sequencer.sent_entities, sequencer.sent_batches

    def _forget_undelivered(self, sequencer: BatchSequencer, tag_cache: TagCache) -> None:
        """Drop cached tags of changed entities that were never sent, so the next run picks them up."""
        undelivered = sequencer.undelivered
        if not undelivered:
            return
        tag_cache.discard(entity.uid for entity in undelivered)
        self.logger.warning(f"{len(undelivered)} changed entities were not delivered and will be retried next run")
