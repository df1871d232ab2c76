"""Tests for storage backends."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError
from redis.exceptions import ConnectionError as RedisConnectionError

from waitlist.core.exceptions import StorageError
from waitlist.storage.redis import RedisCounterStore
from waitlist.storage.s3 import S3ObjectStore


@pytest.mark.asyncio
async def test_counter_incr_expire_ttl(counter_store, clock):
    """Test counter lifecycle."""
    # Missing
    assert await counter_store.ttl("k") == -2

    # Increment without expiry
    assert await counter_store.incr("k") == 1
    assert await counter_store.incr("k") == 2
    assert await counter_store.ttl("k") == -1

    # Expire
    await counter_store.expire("k", 30)
    clock.advance(10.5)
    assert await counter_store.ttl("k") == 20

    # Expired counters vanish and restart
    clock.advance(20)
    assert await counter_store.ttl("k") == -2
    assert await counter_store.incr("k") == 1


@pytest.mark.asyncio
async def test_counter_expire_on_missing_key_is_noop(counter_store):
    await counter_store.expire("missing", 30)
    assert await counter_store.ttl("missing") == -2


@pytest.mark.asyncio
async def test_object_put_get(object_store):
    """Test object write and read."""
    await object_store.put("signups/a_1.json", b'{"x": 1}')

    assert await object_store.get("signups/a_1.json") == b'{"x": 1}'

    with pytest.raises(StorageError):
        await object_store.get("signups/missing.json")


@pytest.mark.asyncio
async def test_object_list_prefix_and_pages(object_store):
    """Test prefix listing with cursors."""
    for key in ["signups/a_1.json", "signups/a_2.json", "signups/b_1.json", "other/a_1.json"]:
        await object_store.put(key, b"{}")

    scoped = await object_store.list("signups/a_", limit=10)
    assert [o.key for o in scoped.objects] == ["signups/a_1.json", "signups/a_2.json"]
    assert scoped.has_more is False
    assert scoped.cursor is None

    first = await object_store.list("signups/", limit=2)
    assert [o.key for o in first.objects] == ["signups/a_1.json", "signups/a_2.json"]
    assert first.has_more is True

    second = await object_store.list("signups/", limit=2, cursor=first.cursor)
    assert [o.key for o in second.objects] == ["signups/b_1.json"]
    assert second.has_more is False


@pytest.mark.asyncio
async def test_object_list_malformed_cursor(object_store):
    with pytest.raises(StorageError):
        await object_store.list("signups/", limit=2, cursor="%%%not-base64%%%")


@pytest.mark.asyncio
async def test_health_checks(counter_store, object_store):
    assert await counter_store.health_check() is True
    assert await object_store.health_check() is True


class TestRedisCounterStore:
    """Tests for the Redis adapter against a mocked client."""

    @pytest.mark.asyncio
    async def test_commands_pass_through(self):
        client = AsyncMock()
        client.incr.return_value = 3
        client.ttl.return_value = 42
        store = RedisCounterStore("redis://localhost:6379/0", client=client)

        assert await store.incr("ratelimit:signup-ip:1.2.3.4") == 3
        await store.expire("ratelimit:signup-ip:1.2.3.4", 3600)
        assert await store.ttl("ratelimit:signup-ip:1.2.3.4") == 42

        client.expire.assert_awaited_once_with("ratelimit:signup-ip:1.2.3.4", 3600)

    @pytest.mark.asyncio
    async def test_errors_become_storage_errors(self):
        client = AsyncMock()
        client.incr.side_effect = RedisConnectionError("connection refused")
        client.ping.side_effect = RedisConnectionError("connection refused")
        store = RedisCounterStore("redis://localhost:6379/0", client=client)

        with pytest.raises(StorageError):
            await store.incr("k")
        assert await store.health_check() is False


def _client_error(operation: str) -> ClientError:
    return ClientError({"Error": {"Code": "InternalError", "Message": "boom"}}, operation)


class TestS3ObjectStore:
    """Tests for the S3 adapter against a mocked boto3 client."""

    @pytest.fixture
    def s3_client(self):
        return MagicMock()

    @pytest.fixture
    def s3_store(self, s3_client):
        store = S3ObjectStore(bucket="signups-test")
        store._client = s3_client
        return store

    @pytest.mark.asyncio
    async def test_put_retries_transient_failure(self, s3_store, s3_client):
        s3_client.put_object.side_effect = [_client_error("PutObject"), {}]

        await s3_store.put("signups/a_1.json", b"{}")

        assert s3_client.put_object.call_count == 2
        s3_client.put_object.assert_called_with(
            Bucket="signups-test",
            Key="signups/a_1.json",
            Body=b"{}",
            ContentType="application/json",
        )

    @pytest.mark.asyncio
    async def test_list_passes_continuation_token(self, s3_store, s3_client):
        s3_client.list_objects_v2.return_value = {
            "Contents": [
                {"Key": "signups/a_1.json", "LastModified": datetime(2024, 5, 1, tzinfo=timezone.utc), "Size": 10},
            ],
            "IsTruncated": True,
            "NextContinuationToken": "token-2",
        }

        page = await s3_store.list("signups/", limit=1, cursor="token-1")

        s3_client.list_objects_v2.assert_called_once_with(
            Bucket="signups-test",
            Prefix="signups/",
            MaxKeys=1,
            ContinuationToken="token-1",
        )
        assert [o.key for o in page.objects] == ["signups/a_1.json"]
        assert page.cursor == "token-2"
        assert page.has_more is True

    @pytest.mark.asyncio
    async def test_list_failure_is_storage_error(self, s3_store, s3_client):
        s3_client.list_objects_v2.side_effect = _client_error("ListObjectsV2")

        with pytest.raises(StorageError):
            await s3_store.list("signups/", limit=10)

    @pytest.mark.asyncio
    async def test_get_reads_body(self, s3_store, s3_client):
        body = MagicMock()
        body.read.return_value = b'{"email": "a@example.com"}'
        s3_client.get_object.return_value = {"Body": body}

        assert await s3_store.get("signups/a_1.json") == b'{"email": "a@example.com"}'


@pytest.mark.asyncio
async def test_object_keys_helper(object_store):
    """The key listing helper sits beside the ``list`` method."""
    await object_store.put("signups/b_1.json", b"{}")
    await object_store.put("signups/a_1.json", b"{}")

    assert object_store.keys() == ["signups/a_1.json", "signups/b_1.json"]
