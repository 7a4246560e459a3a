"""
Tests for the Redis fast store, against a mocked asyncio client.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from quickcafe.repositories import RedisFastStore


def make_client() -> MagicMock:
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    return client


def test_keys_are_namespaced_and_ttl_applied():
    client = make_client()
    store = RedisFastStore(redis_client=client, namespace="qc")

    asyncio.run(store.set("search:k", "payload", 60))

    client.set.assert_awaited_once_with("qc:search:k", "payload", ex=60)


def test_get_decodes_bytes():
    client = make_client()
    client.get.return_value = b'{"entity_ids": []}'
    store = RedisFastStore(redis_client=client, namespace="qc")

    assert asyncio.run(store.get("search:k")) == '{"entity_ids": []}'
    client.get.assert_awaited_once_with("qc:search:k")


def test_delete_reports_whether_key_existed():
    client = make_client()
    store = RedisFastStore(redis_client=client)

    assert asyncio.run(store.delete("analysis:c1")) is True
    client.delete.return_value = 0
    assert asyncio.run(store.delete("analysis:c1")) is False


def test_clear_scans_prefix_only():
    client = make_client()
    keys = ["qc:search:a", "qc:search:b"]

    async def scan_iter(match):
        assert match == "qc:search:*"
        for key in keys:
            yield key

    client.scan_iter = scan_iter
    store = RedisFastStore(redis_client=client, namespace="qc")

    assert asyncio.run(store.clear("search:")) == 2
    assert [call.args[0] for call in client.delete.await_args_list] == keys


def test_health_check_handles_connection_errors():
    client = make_client()
    store = RedisFastStore(redis_client=client)
    assert asyncio.run(store.health_check()) is True

    client.ping.side_effect = ConnectionError("refused")
    assert asyncio.run(store.health_check()) is False
