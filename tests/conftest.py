"""
Pytest configuration and fixtures.
"""

import pytest
import os
import sys
import json
import tempfile
from unittest.mock import Mock

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.settings import WebhookSettings
from core.store import MemoryStore
from models.entity import EntityPage, EntityRecord

ENDPOINT = 'https://example.com/webhook'


def entity(uid, etag=None, kind='Component', name=None):
    """Build a minimal catalog entity payload."""
    metadata = {'name': name or uid}
    if uid is not None:
        metadata['uid'] = uid
    if etag is not None:
        metadata['etag'] = etag
    return {'kind': kind, 'metadata': metadata}


def make_response(status_code=200, json_data=None, text=''):
    """Mock requests.Response."""
    response = Mock()
    response.status_code = status_code
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_data
    return response


class FakeCatalog:
    """Catalog client returning canned pages, then empty pages."""

    def __init__(self, pages=None, error_at=None, error=None):
        self.pages = [list(page) for page in (pages or [])]
        self.calls = []
        self.error_at = error_at
        self.error = error

    def fetch_entities(self, entity_filter, limit, offset, token, deadline=None):
        index = len(self.calls)
        self.calls.append({
            'filter': entity_filter,
            'limit': limit,
            'offset': offset,
            'token': token,
        })
        if self.error_at is not None and index == self.error_at:
            raise self.error
        items = self.pages[index] if index < len(self.pages) else []
        return EntityPage(items=[EntityRecord.from_dict(item) for item in items], offset=offset)


class StubTokenProvider:
    def __init__(self, token='test-token'):
        self.token = token
        self.calls = 0

    def get_token(self, target_service='catalog'):
        self.calls += 1
        return self.token


def make_session(remote_config=None, config_status=200, post_status=200, post_text=''):
    """Mock HTTP session answering the config probe and batch POSTs."""
    session = Mock()

    def respond(method, url, **kwargs):
        if url.endswith('?config'):
            if config_status != 200:
                return make_response(config_status, text='config unavailable')
            return make_response(200, json_data=remote_config or {})
        return make_response(post_status, text=post_text)

    session.request.side_effect = respond
    return session


def posted_bodies(session):
    """Decoded JSON bodies of every POST made through a mock session."""
    return [
        json.loads(call.kwargs['data'])
        for call in session.request.call_args_list
        if call.args[0] == 'POST'
    ]


@pytest.fixture
def temp_cache_file():
    """Path for a temporary JSON store file."""
    fd, path = tempfile.mkstemp(suffix='.json')
    os.close(fd)
    os.unlink(path)
    yield path
    for leftover in (path, f"{path}.tmp"):
        if os.path.exists(leftover):
            os.unlink(leftover)


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def settings():
    """Configured settings with small sizes and signing enabled."""
    return WebhookSettings(
        remote_endpoint=ENDPOINT,
        secret='test-secret',
        interval_minutes=1,
        entity_request_size=4,
        entity_send_size=2,
        catalog_token='test-token',
    )
