"""Storage backends for multipart copies.

``StorageBackend`` is the capability the orchestrator drives: open a
multipart upload, copy byte ranges into it, then complete or abort it.
``S3StorageBackend`` implements it over a boto3 S3 client.
"""

from abc import ABC, abstractmethod
from typing import Any, Sequence

from botocore.exceptions import ClientError

from multipart_copy.models import CopiedPart, Location, PartitionRange, TransferOptions
from multipart_copy.retry import DEFAULT_RETRY_DELAYS, retry_with_backoff

DEFAULT_OBJECT_ACL = "private"

NO_SUCH_UPLOAD = "NoSuchUpload"

# TransferOptions field -> CreateMultipartUpload parameter
OPTION_PARAMETERS = {
    "expires": "Expires",
    "content_type": "ContentType",
    "content_disposition": "ContentDisposition",
    "content_encoding": "ContentEncoding",
    "content_language": "ContentLanguage",
    "cache_control": "CacheControl",
    "server_side_encryption": "ServerSideEncryption",
    "metadata": "Metadata",
}


class StorageBackend(ABC):
    """Abstract multipart upload capability of a storage service."""

    @abstractmethod
    def initiate(self, destination: Location, options: TransferOptions) -> str:
        """Open a multipart upload and return its upload id."""
        pass

    @abstractmethod
    def copy_range(
        self,
        destination: Location,
        upload_id: str,
        part_number: int,
        source: Location,
        byte_range: PartitionRange,
    ) -> CopiedPart:
        """Copy one byte range of the source into the upload."""
        pass

    @abstractmethod
    def complete(
        self,
        destination: Location,
        upload_id: str,
        parts: list[dict[str, Any]],
    ) -> dict[str, Any]:
        """Assemble the uploaded parts into the destination object."""
        pass

    @abstractmethod
    def abort(self, destination: Location, upload_id: str) -> None:
        """Abort the upload, discarding its parts."""
        pass

    @abstractmethod
    def list_remaining_parts(
        self,
        destination: Location,
        upload_id: str,
    ) -> list[dict[str, Any]]:
        """List parts still associated with the upload."""
        pass


class S3StorageBackend(StorageBackend):
    """StorageBackend over a boto3 S3 client.

    Part copies and part listings are retried on transient errors. Opening,
    completing and aborting an upload are issued once.

    Args:
        s3_client: boto3 S3 client
        retry_attempts: Attempts per retried call, including the first
        retry_delays: Delays (seconds) between attempts
    """

    def __init__(
        self,
        s3_client: Any,
        retry_attempts: int = 3,
        retry_delays: Sequence[float] = DEFAULT_RETRY_DELAYS,
    ):
        self.s3_client = s3_client
        self.retry_attempts = retry_attempts
        self.retry_delays = retry_delays

    def initiate(self, destination: Location, options: TransferOptions) -> str:
        params: dict[str, Any] = {
            "Bucket": destination.bucket,
            "Key": destination.key,
            "ACL": options.acl or DEFAULT_OBJECT_ACL,
        }
        for field_name, parameter in OPTION_PARAMETERS.items():
            value = getattr(options, field_name)
            if value:
                params[parameter] = value

        response = self.s3_client.create_multipart_upload(**params)
        return response["UploadId"]

    def copy_range(
        self,
        destination: Location,
        upload_id: str,
        part_number: int,
        source: Location,
        byte_range: PartitionRange,
    ) -> CopiedPart:
        response = self._retry(
            self.s3_client.upload_part_copy,
            Bucket=destination.bucket,
            Key=destination.key,
            CopySource={"Bucket": source.bucket, "Key": source.key},
            CopySourceRange=byte_range.content_range,
            PartNumber=part_number,
            UploadId=upload_id,
        )
        return CopiedPart(
            part_number=part_number,
            etag=response["CopyPartResult"]["ETag"],
        )

    def complete(
        self,
        destination: Location,
        upload_id: str,
        parts: list[dict[str, Any]],
    ) -> dict[str, Any]:
        return self.s3_client.complete_multipart_upload(
            Bucket=destination.bucket,
            Key=destination.key,
            UploadId=upload_id,
            MultipartUpload={"Parts": parts},
        )

    def abort(self, destination: Location, upload_id: str) -> None:
        self.s3_client.abort_multipart_upload(
            Bucket=destination.bucket,
            Key=destination.key,
            UploadId=upload_id,
        )

    def list_remaining_parts(
        self,
        destination: Location,
        upload_id: str,
    ) -> list[dict[str, Any]]:
        try:
            return self._retry(self._list_parts, destination, upload_id)
        except ClientError as e:
            # An aborted upload that S3 already forgot has no parts left
            if e.response.get("Error", {}).get("Code") == NO_SUCH_UPLOAD:
                return []
            raise

    def object_size(self, location: Location) -> int:
        """Return the size in bytes of an existing object."""
        response = self._retry(
            self.s3_client.head_object,
            Bucket=location.bucket,
            Key=location.key,
        )
        return response["ContentLength"]

    def _list_parts(self, destination: Location, upload_id: str) -> list[dict[str, Any]]:
        paginator = self.s3_client.get_paginator("list_parts")
        parts: list[dict[str, Any]] = []
        for page in paginator.paginate(
            Bucket=destination.bucket,
            Key=destination.key,
            UploadId=upload_id,
        ):
            parts.extend(page.get("Parts", []))
        return parts

    def _retry(self, func, *args, **kwargs):
        return retry_with_backoff(
            func,
            max_attempts=self.retry_attempts,
            delays=self.retry_delays,
            args=args,
            kwargs=kwargs,
        )
