from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from config import Settings
from core.exceptions import RemoteStoreError
from db.supabase import SupabaseRemoteStore, create_remote_store, parse_timestamp


def client_returning(data=None, error=None, count=None) -> MagicMock:
    """Client whose every query chain ends in a response with this payload"""
    client = MagicMock()
    response = SimpleNamespace(data=data, error=error, count=count)
    query = client.table.return_value
    for method in ("select", "insert", "update", "upsert", "delete", "eq", "neq", "order", "limit"):
        getattr(query, method).return_value = query
    query.execute.return_value = response
    return client


@pytest.mark.asyncio
async def test_load_submissions_maps_records():
    client = client_returning(data=[{
        "id": "123456",
        "form_id": "contact",
        "form_title": "Contact Information",
        "submission_data": {"firstName": "Ada"},
        "created_at": "2024-01-31T10:00:00Z",
        "user_agent": "widget",
    }])
    store = SupabaseRemoteStore(client, timeout=1.0)

    submissions = await store.load_submissions()

    client.table.assert_called_with("form_submissions")
    assert submissions[0].id == "123456"
    assert submissions[0].data == {"firstName": "Ada"}
    assert submissions[0].timestamp.year == 2024


@pytest.mark.asyncio
async def test_response_error_becomes_remote_store_error():
    store = SupabaseRemoteStore(client_returning(error="permission denied"), timeout=1.0)

    with pytest.raises(RemoteStoreError) as exc_info:
        await store.delete_submission("123456")
    assert exc_info.value.operation == "delete_submission"


@pytest.mark.asyncio
async def test_client_exception_becomes_remote_store_error():
    client = client_returning()
    client.table.return_value.execute.side_effect = ConnectionError("network down")
    store = SupabaseRemoteStore(client, timeout=1.0)

    with pytest.raises(RemoteStoreError, match="network down"):
        await store.load_custom_qa()
    assert await store.test_connection() is False


@pytest.mark.asyncio
async def test_no_active_form_is_none():
    store = SupabaseRemoteStore(client_returning(data=[]), timeout=1.0)
    assert await store.load_active_form() is None


def test_create_remote_store_requires_configuration():
    assert create_remote_store(Settings(SUPABASE_URL=None, SUPABASE_ANON_KEY=None, SUPABASE_SERVICE_ROLE_KEY=None)) is None


def test_parse_timestamp_falls_back_on_garbage():
    assert parse_timestamp("2024-01-31T10:00:00+00:00").day == 31
    assert parse_timestamp("not a date") is not None
    assert parse_timestamp(None) is not None


def test_parse_timestamp_is_always_naive():
    assert parse_timestamp("2024-01-31T10:00:00Z").tzinfo is None
    assert parse_timestamp("2024-01-31T10:00:00").tzinfo is None
    assert parse_timestamp(None).tzinfo is None
