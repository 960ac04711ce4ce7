"""S3 client factory for the multipart copy tool.

Creates a boto3 S3 client from CopySettings, with the endpoint,
credentials, region, and addressing style they name. Fields left unset fall
through to boto3's own resolution.

The connection pool is sized to the part-copy concurrency so parallel
UploadPartCopy calls don't queue on the pool.
"""

from typing import Optional

import boto3
from botocore.client import Config

from multipart_copy.models import CopySettings

# botocore's default pool size
DEFAULT_MAX_POOL_CONNECTIONS = 10


def build_s3_client(settings: CopySettings, max_connections: Optional[int] = None):
    """Build a boto3 S3 client for the given settings.

    Args:
        settings: Copy settings containing endpoint, credentials,
                 region, addressing style and concurrency.
        max_connections: Number of concurrent requests the client must
                 serve, e.g. the part count of an unbounded copy. Defaults
                 to settings.max_concurrency.

    Returns:
        A boto3 S3 client.
    """
    connections = max_connections or settings.max_concurrency or 0
    pool_size = max(DEFAULT_MAX_POOL_CONNECTIONS, connections)

    boto_config = Config(
        signature_version="s3v4",
        s3={"addressing_style": settings.addressing_style},
        max_pool_connections=pool_size,
    )

    return boto3.client(
        "s3",
        endpoint_url=settings.endpoint_url,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        region_name=settings.region_name,
        config=boto_config,
    )
