"""Partition planning for multipart copies.

Splits an object of known size into contiguous, inclusive byte ranges. A
trailing remainder smaller than the S3 minimum part size is folded into the
last full range instead of becoming its own undersized part.
"""

from typing import Optional

from multipart_copy.errors import InvalidArgument
from multipart_copy.models import PartitionRange

# S3 minimum size for every part except the last: 5 MiB
MIN_PART_SIZE = 5 * 1024 * 1024

# Default part size: 50 MB
DEFAULT_PART_SIZE = 50_000_000

# S3 UploadPartCopy limit: 5 GiB
MAX_PART_SIZE = 5 * 1024 * 1024 * 1024

# S3 limit on parts per multipart upload
MAX_PART_COUNT = 10_000


def is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def plan_partitions(
    object_size: int,
    part_size: Optional[int] = None,
) -> list[PartitionRange]:
    """Compute the ordered byte ranges covering ``[0, object_size)``.

    Args:
        object_size: Size of the source object in bytes.
        part_size: Target size of each part. Defaults to DEFAULT_PART_SIZE.

    Returns:
        Ranges ordered by part number, starting at 1. An empty object
        yields no ranges.

    Raises:
        InvalidArgument: If the size is negative or not an integer, or the
            part size is below MIN_PART_SIZE.

    Example:
        >>> plan_partitions(100_000_000)
        [PartitionRange(part_number=1, start=0, end=49999999),
         PartitionRange(part_number=2, start=50000000, end=99999999)]
    """
    if part_size is None:
        part_size = DEFAULT_PART_SIZE

    if not is_int(object_size) or object_size < 0:
        raise InvalidArgument(
            f"object_size must be a non-negative integer, got {object_size!r}"
        )
    if not is_int(part_size) or part_size < MIN_PART_SIZE:
        raise InvalidArgument(
            f"part_size must be an integer of at least {MIN_PART_SIZE} bytes, "
            f"got {part_size!r}"
        )

    full_parts, remainder = divmod(object_size, part_size)

    # A single part is valid at any size
    if full_parts == 0:
        if object_size == 0:
            return []
        return [PartitionRange(part_number=1, start=0, end=object_size - 1)]

    ranges = [
        PartitionRange(
            part_number=index + 1,
            start=index * part_size,
            end=(index + 1) * part_size - 1,
        )
        for index in range(full_parts)
    ]

    if remainder >= MIN_PART_SIZE:
        ranges.append(PartitionRange(
            part_number=full_parts + 1,
            start=full_parts * part_size,
            end=object_size - 1,
        ))
    elif remainder:
        last = ranges[-1]
        ranges[-1] = PartitionRange(
            part_number=last.part_number,
            start=last.start,
            end=object_size - 1,
        )

    return ranges


def count_partitions(object_size: int, part_size: Optional[int] = None) -> int:
    """Number of ranges ``plan_partitions`` returns, without building them."""
    if part_size is None:
        part_size = DEFAULT_PART_SIZE
    full_parts, remainder = divmod(object_size, part_size)
    if full_parts == 0:
        return 1 if object_size else 0
    return full_parts + (1 if remainder >= MIN_PART_SIZE else 0)
