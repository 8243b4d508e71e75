"""
Cloudflare R2 object storage system implementation.
"""

from systems.base import ObjectStorageSystem
from configuration import R2_PROVIDER_DOMAIN, R2_REGION
import logging

logger = logging.getLogger(__name__)


def r2_endpoint(account_id: str) -> str:
    """Build the S3 API endpoint for an R2 account."""
    return f"https://{account_id}.{R2_PROVIDER_DOMAIN}"


class R2System(ObjectStorageSystem):
    """Cloudflare R2 object storage system."""

    def __init__(self, account_id: str, bucket_name: str, credentials: dict = None):
        if credentials is None:
            credentials = {}
        credentials.setdefault("region_name", R2_REGION)

        super().__init__(
            endpoint=r2_endpoint(account_id),
            bucket_name=bucket_name,
            credentials=credentials
        )
        logger.debug(f"Initialized R2 system for bucket {bucket_name}")
