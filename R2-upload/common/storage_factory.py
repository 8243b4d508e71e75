"""
Factory module for creating storage system instances.
"""

import logging

# Suppress boto3/botocore logging BEFORE importing any boto3-related modules
logging.getLogger('botocore').setLevel(logging.CRITICAL)
logging.getLogger('botocore.credentials').setLevel(logging.CRITICAL)
logging.getLogger('boto3').setLevel(logging.CRITICAL)
logging.getLogger('aioboto3').setLevel(logging.CRITICAL)
logging.getLogger('urllib3').setLevel(logging.CRITICAL)

from systems.r2 import R2System
from configuration import R2_REGION

logger = logging.getLogger(__name__)


def create_storage_system(config) -> R2System:
    """Create an R2 storage system from the current configuration.

    Credentials are read from ``config`` on every call, so a new system picks
    up configuration changes.

    Args:
        config: ConfigurationSource providing account, credentials and bucket

    Returns:
        R2System instance (not yet opened; use ``async with``)

    Raises:
        ValueError: If the account id or bucket is not configured
    """
    account_id = config.account_id
    bucket = config.bucket

    if not account_id:
        raise ValueError("R2 account id is not configured")
    if not bucket:
        raise ValueError("R2 bucket is not configured")

    credentials = {
        "access_key_id": config.access_key_id,
        "secret_access_key": config.access_key_secret,
        "region_name": R2_REGION,
    }
    return R2System(account_id, bucket, credentials)
