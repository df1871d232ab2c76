"""S3-compatible object store for production signups."""

import asyncio
from typing import Any

import structlog
from botocore.exceptions import BotoCoreError, ClientError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from waitlist.core.exceptions import StorageError
from waitlist.storage.base import ListPage, ObjectStore, StoredObject

logger = structlog.get_logger()

_TRANSIENT = retry_if_exception_type((BotoCoreError, ClientError))


class S3ObjectStore(ObjectStore):
    """Object store on S3 or an S3-compatible endpoint (R2, MinIO).

    Objects are private. Listing uses ``list_objects_v2`` and passes the
    continuation token through as the opaque cursor.
    """

    def __init__(
        self,
        bucket: str,
        endpoint_url: str | None = None,
        region: str = "us-east-1",
        access_key_id: str = "",
        secret_access_key: str = "",
    ) -> None:
        self._bucket = bucket
        self._endpoint_url = endpoint_url
        self._region = region
        self._access_key_id = access_key_id
        self._secret_access_key = secret_access_key
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazy initialization of the boto3 client."""
        if self._client is None:
            import boto3

            self._client = boto3.client(
                "s3",
                endpoint_url=self._endpoint_url,
                region_name=self._region,
                aws_access_key_id=self._access_key_id or None,
                aws_secret_access_key=self._secret_access_key or None,
            )
            logger.info("S3 client initialized", bucket=self._bucket, endpoint=self._endpoint_url)
        return self._client

    @retry(
        retry=_TRANSIENT,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        reraise=True,
    )
    async def _put(self, key: str, data: bytes, content_type: str) -> None:
        client = self._get_client()
        await asyncio.to_thread(
            client.put_object,
            Bucket=self._bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )

    async def put(self, key: str, data: bytes, content_type: str = "application/json") -> None:
        try:
            await self._put(key, data, content_type)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"S3 put failed for {key}: {e}", operation="put") from e

    async def list(self, prefix: str, limit: int, cursor: str | None = None) -> ListPage:
        client = self._get_client()
        params: dict[str, Any] = {"Bucket": self._bucket, "Prefix": prefix, "MaxKeys": limit}
        if cursor:
            params["ContinuationToken"] = cursor

        try:
            response = await asyncio.to_thread(client.list_objects_v2, **params)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"S3 list failed for {prefix}: {e}", operation="list") from e

        objects = [
            StoredObject(key=item["Key"], uploaded_at=item["LastModified"], size=item.get("Size", 0))
            for item in response.get("Contents", [])
        ]
        has_more = bool(response.get("IsTruncated"))
        next_cursor = response.get("NextContinuationToken") if has_more else None
        return ListPage(objects=objects, cursor=next_cursor, has_more=has_more)

    @retry(
        retry=_TRANSIENT,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        reraise=True,
    )
    async def _get(self, key: str) -> bytes:
        client = self._get_client()
        response = await asyncio.to_thread(client.get_object, Bucket=self._bucket, Key=key)
        return await asyncio.to_thread(response["Body"].read)

    async def get(self, key: str) -> bytes:
        try:
            return await self._get(key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"S3 get failed for {key}: {e}", operation="get") from e

    async def health_check(self) -> bool:
        try:
            client = self._get_client()
            await asyncio.to_thread(client.head_bucket, Bucket=self._bucket)
            return True
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 health check failed", error=str(e))
            return False
