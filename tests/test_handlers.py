"""
Tests for handler implementations.
"""

import pytest
import hashlib
import hmac
import json
import time
from unittest.mock import Mock
import sys
import os

import requests

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import ENDPOINT, entity, make_response
from core.errors import DeliveryError, FetchError, RunTimeoutError
from core.settings import WebhookSettings
from handlers.auth_handler import StaticTokenProvider
from handlers.catalog_handler import CatalogHandler
from handlers.remote_config_handler import RemoteConfigHandler
from handlers.webhook_handler import WebhookHandler
from models.batch import Batch
from models.entity import EntityRecord
from models.filters import parse_filter
from utils.signing import canonical_json, sign_body


def expected_signature(secret, body):
    return 'sha256=' + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def session_returning(response):
    session = Mock()
    session.request.return_value = response
    return session


class TestSigning:
    """Tests for body serialization and signatures."""

    def test_canonical_json_is_compact_and_ordered(self):
        body = canonical_json({'batchId': 1, 'entities': [], 'isFinalBatch': True})
        assert body == b'{"batchId":1,"entities":[],"isFinalBatch":true}'

    def test_sign_body(self):
        assert sign_body('test-secret', b'payload') == expected_signature('test-secret', b'payload')

    def test_sign_empty_body(self):
        assert sign_body('test-secret', b'') == expected_signature('test-secret', b'')


class TestWebhookHandler:
    """Tests for batch delivery."""

    def make_batch(self, is_final=True):
        return Batch(
            batch_id=1234567890,
            entities=[EntityRecord.from_dict(entity('uid1', 'etag1'))],
            is_final=is_final,
        )

    def test_get_method_name(self, settings):
        assert WebhookHandler(settings, Mock()).get_method_name() == 'webhook delivery'

    def test_posts_signed_payload(self, settings):
        session = session_returning(make_response(200))
        WebhookHandler(settings, session).send_batch(self.make_batch())

        method, url = session.request.call_args.args
        kwargs = session.request.call_args.kwargs
        body = kwargs['data']

        assert method == 'POST'
        assert url == ENDPOINT
        assert json.loads(body) == {
            'batchId': 1234567890,
            'entities': [entity('uid1', 'etag1')],
            'isFinalBatch': True,
        }
        assert kwargs['headers']['Content-Type'] == 'application/json'
        assert kwargs['headers']['x-hub-signature-256'] == expected_signature('test-secret', body)

    def test_no_signature_without_secret(self, settings):
        settings.secret = None
        session = session_returning(make_response(200))
        WebhookHandler(settings, session).send_batch(self.make_batch())

        assert 'x-hub-signature-256' not in session.request.call_args.kwargs['headers']

    def test_error_status_raises_delivery_error(self, settings):
        session = session_returning(make_response(500, text='Internal Server Error'))

        with pytest.raises(DeliveryError) as exc_info:
            WebhookHandler(settings, session).send_batch(self.make_batch())

        assert exc_info.value.status == 500
        assert exc_info.value.body == 'Internal Server Error'

    def test_network_error_raises_delivery_error(self, settings):
        session = Mock()
        session.request.side_effect = requests.exceptions.ConnectionError('refused')

        with pytest.raises(DeliveryError) as exc_info:
            WebhookHandler(settings, session).send_batch(self.make_batch())

        assert exc_info.value.status is None

    def test_expired_deadline_raises_timeout(self, settings):
        session = session_returning(make_response(200))

        with pytest.raises(RunTimeoutError):
            WebhookHandler(settings, session).send_batch(self.make_batch(), deadline=time.monotonic() - 1)

        session.request.assert_not_called()

    def test_timeout_clamped_to_deadline(self, settings):
        settings.http_timeout = 30
        session = session_returning(make_response(200))

        WebhookHandler(settings, session).send_batch(self.make_batch(), deadline=time.monotonic() + 5)

        assert session.request.call_args.kwargs['timeout'] <= 5


class TestRemoteConfigHandler:
    """Tests for the remote config probe."""

    def test_signed_get_to_config_url(self, settings):
        session = session_returning(make_response(200, json_data={}))
        RemoteConfigHandler(settings, session).probe()

        method, url = session.request.call_args.args
        headers = session.request.call_args.kwargs['headers']
        assert method == 'GET'
        assert url == f"{ENDPOINT}?config"
        assert headers['x-hub-signature-256'] == expected_signature('test-secret', b'')

    def test_parses_directives(self, settings):
        session = session_returning(make_response(200, json_data={
            'resetCache': True,
            'entityFilter': '[{"kind":"Component"}]',
        }))

        remote_config = RemoteConfigHandler(settings, session).probe()

        assert remote_config.reset_cache is True
        assert remote_config.entity_filter == parse_filter({'kind': 'Component'})

    def test_empty_response_means_no_directives(self, settings):
        session = session_returning(make_response(200, json_data={}))
        remote_config = RemoteConfigHandler(settings, session).probe()
        assert remote_config.is_empty

    def test_error_status_is_not_fatal(self, settings):
        session = session_returning(make_response(404, text='Not Found'))
        assert RemoteConfigHandler(settings, session).probe().is_empty

    def test_network_error_is_not_fatal(self, settings):
        session = Mock()
        session.request.side_effect = requests.exceptions.Timeout('slow')
        assert RemoteConfigHandler(settings, session).probe().is_empty

    def test_non_json_body_is_not_fatal(self, settings):
        session = session_returning(make_response(200, text='<html>'))
        assert RemoteConfigHandler(settings, session).probe().is_empty

    def test_invalid_filter_keeps_reset(self, settings):
        session = session_returning(make_response(200, json_data={
            'resetCache': True,
            'entityFilter': 'kind=Component',
        }))

        remote_config = RemoteConfigHandler(settings, session).probe()

        assert remote_config.reset_cache is True
        assert remote_config.entity_filter is None

    def test_fetch_raises_on_failure(self, settings):
        from core.errors import ProbeError
        session = session_returning(make_response(503))

        with pytest.raises(ProbeError):
            RemoteConfigHandler(settings, session).fetch()


class TestCatalogHandler:
    """Tests for the catalog client."""

    def test_get_method_name(self, settings):
        assert CatalogHandler(settings, Mock()).get_method_name() == 'catalog fetch'

    def test_fetch_entities_request(self, settings):
        settings.catalog_url = 'http://catalog.local/api/catalog'
        session = session_returning(make_response(200, json_data=[entity('uid1', 'etag1')]))

        page = CatalogHandler(settings, session).fetch_entities(
            parse_filter({'kind': 'Component'}), limit=4, offset=8, token='test-token'
        )

        method, url = session.request.call_args.args
        kwargs = session.request.call_args.kwargs
        assert method == 'GET'
        assert url == 'http://catalog.local/api/catalog/entities'
        assert kwargs['params'] == [('limit', 4), ('offset', 8), ('filter', 'kind=Component')]
        assert kwargs['headers']['Authorization'] == 'Bearer test-token'
        assert [e.uid for e in page.items] == ['uid1']
        assert page.offset == 8

    def test_accepts_items_wrapper(self, settings):
        session = session_returning(make_response(200, json_data={'items': [entity('uid1'), entity('uid2')]}))
        page = CatalogHandler(settings, session).fetch_entities(None, 500, 0, 'token')
        assert len(page) == 2

    def test_malformed_items_still_count(self, settings):
        session = session_returning(make_response(200, json_data=[entity('uid1'), 'junk', entity('uid2'), None]))

        page = CatalogHandler(settings, session).fetch_entities(None, 4, 0, 'token')

        assert [e.uid for e in page.items] == ['uid1', 'uid2']
        assert page.count == 4

    def test_error_status_raises_fetch_error(self, settings):
        session = session_returning(make_response(401, text='Unauthorized'))

        with pytest.raises(FetchError) as exc_info:
            CatalogHandler(settings, session).fetch_entities(None, 500, 0, 'token')

        assert exc_info.value.status == 401

    def test_unexpected_body_raises_fetch_error(self, settings):
        session = session_returning(make_response(200, json_data={'error': 'nope'}))

        with pytest.raises(FetchError):
            CatalogHandler(settings, session).fetch_entities(None, 500, 0, 'token')


class TestStaticTokenProvider:
    """Tests for the token provider."""

    def test_returns_configured_token(self):
        provider = StaticTokenProvider(WebhookSettings(catalog_token='abc'))
        assert provider.get_token('catalog') == 'abc'

    def test_missing_token(self):
        assert StaticTokenProvider(WebhookSettings()).get_token('catalog') is None


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
