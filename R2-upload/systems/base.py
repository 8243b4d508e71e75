"""
Async base class for S3-compatible object storage systems.
"""

import logging
import time
from enum import Enum
from typing import Any, Optional

import aioboto3
from botocore.config import Config
from botocore.exceptions import ClientError

from configuration import (
    CLIENT_MAX_ATTEMPTS,
    CONNECT_TIMEOUT_SECONDS,
    MAX_POOL_CONNECTIONS,
    PUBLIC_READ_ACL,
    READ_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

# Error codes returned by HEAD on a missing key
NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")


class ExistenceCheck(Enum):
    """Outcome of a remote existence check."""

    EXISTS = "exists"
    ABSENT = "absent"
    CHECK_FAILED = "check_failed"


class ObjectStorageSystem:
    """Async base class for object storage systems."""

    def __init__(self, endpoint: str, bucket_name: str, credentials: dict):
        self.endpoint = endpoint
        self.bucket_name = bucket_name
        self.credentials = credentials

        # Single source of truth for config
        self._config = self._create_config()

        self.session = aioboto3.Session(
            aws_access_key_id=credentials.get("access_key_id"),
            aws_secret_access_key=credentials.get("secret_access_key"),
            region_name=credentials.get("region_name", "auto"),
        )

        self.client = None

        logger.debug(f"Initialized async storage for {endpoint}")

    def _create_config(self) -> Config:
        """Create the botocore config shared by every client of this system."""
        return Config(
            max_pool_connections=MAX_POOL_CONNECTIONS,
            connect_timeout=CONNECT_TIMEOUT_SECONDS,
            read_timeout=READ_TIMEOUT_SECONDS,
            retries={
                'max_attempts': CLIENT_MAX_ATTEMPTS,
                'mode': 'adaptive',
            },
            s3={
                'addressing_style': 'path',
            },
        )

    async def __aenter__(self):
        """Async context manager entry."""
        self.client = await self.session.client(
            "s3",
            endpoint_url=self.endpoint,
            config=self._config,
        ).__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self.client:
            await self.client.__aexit__(exc_type, exc_val, exc_tb)
            self.client = None

    def _require_client(self):
        if not self.client:
            raise RuntimeError("Storage client not initialized. Use async context manager.")

    async def check_exists(self, bucket: str, key: str) -> ExistenceCheck:
        """Check whether an object exists at ``key``.

        A 404 answer means ABSENT. Any other failure (auth, network, throttling)
        is reported as CHECK_FAILED; the caller decides what that means.
        """
        self._require_client()

        try:
            await self.client.head_object(Bucket=bucket, Key=key)
            return ExistenceCheck.EXISTS

        except ClientError as e:
            error_code = str(e.response.get('Error', {}).get('Code', 'Unknown'))
            status_code = e.response.get('ResponseMetadata', {}).get('HTTPStatusCode', 0)

            if error_code in NOT_FOUND_CODES or status_code == 404:
                return ExistenceCheck.ABSENT

            logger.warning(
                f"Existence check failed for {key}: {error_code} (HTTP {status_code})"
            )
            return ExistenceCheck.CHECK_FAILED

        except Exception as e:
            logger.warning(f"Existence check failed for {key}: {e}")
            return ExistenceCheck.CHECK_FAILED

    async def put_object(
        self,
        bucket: str,
        key: str,
        body: Any,
        visibility: str = PUBLIC_READ_ACL,
        content_type: Optional[str] = None,
    ) -> bool:
        """Upload ``body`` (bytes or a binary file object) to ``key``.

        Returns:
            True if successful, False otherwise
        """
        self._require_client()

        params = {
            'Bucket': bucket,
            'Key': key,
            'Body': body,
            'ACL': visibility,
        }
        if content_type:
            params['ContentType'] = content_type

        try:
            start_time = time.time()
            await self.client.put_object(**params)
            latency_ms = (time.time() - start_time) * 1000
            logger.info(f"Uploaded {key} to {bucket} in {latency_ms:.0f} ms")
            return True

        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', 'Unknown')
            status_code = e.response.get('ResponseMetadata', {}).get('HTTPStatusCode', 0)

            if status_code in (429, 503):
                logger.error(
                    f"🚨 R2 THROTTLING DETECTED: {error_code} (HTTP {status_code}) for {key}"
                )
            else:
                logger.error(f"S3 error {error_code} (HTTP {status_code}) uploading {key}")
            return False

        except Exception as e:
            logger.error(f"Unexpected error uploading {key}: {e}", exc_info=True)
            return False

    async def verify_connection(self) -> bool:
        """Verify storage connection and configuration."""
        if not self.client:
            logger.error("Client not initialized. Use async context manager.")
            return False

        try:
            logger.info("Verifying storage connection...")

            await self.client.head_bucket(Bucket=self.bucket_name)
            logger.info(f"✓ Successfully connected to bucket: {self.bucket_name}")
            logger.info(f"✓ Endpoint: {self.endpoint}")
            return True

        except Exception as e:
            logger.error(f"✗ Connection verification failed: {e}")
            return False
