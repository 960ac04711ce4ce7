"""Shared fixtures: an in-memory storage backend."""

import threading
import time
from collections import defaultdict

import pytest

from multipart_copy.backend import StorageBackend
from multipart_copy.models import CopiedPart, Location, TransferRequest


class FakeBackend(StorageBackend):
    """In-memory StorageBackend recording every call.

    Failures and timing are configured through attributes:
    - initiate_error, complete_error, abort_error, list_error: raised by
      the matching call when set
    - copy_errors: part number -> exception raised by copy_range
    - copy_delays: part number -> seconds to sleep before copying
    - copy_gates: part number -> threading.Event the copy waits on
    - remaining_parts: returned by list_remaining_parts
    """

    def __init__(self):
        self.upload_id = "upload-123"
        self.initiate_error = None
        self.copy_errors = {}
        self.copy_delays = {}
        self.copy_gates = {}
        self.complete_error = None
        self.abort_error = None
        self.list_error = None
        self.remaining_parts = []
        self.complete_response = {"ETag": '"final-etag"', "Location": "https://example.com/dst/copy.bin"}
        self.calls = []
        self.finished = defaultdict(threading.Event)
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def _record(self, name, **kwargs):
        with self._lock:
            self.calls.append((name, kwargs))

    def calls_to(self, name):
        with self._lock:
            return [kwargs for call_name, kwargs in self.calls if call_name == name]

    def call_names(self):
        with self._lock:
            return [name for name, _ in self.calls]

    def part_finished(self, part_number):
        with self._lock:
            return self.finished[part_number]

    def initiate(self, destination, options):
        self._record("initiate", destination=destination, options=options)
        if self.initiate_error:
            raise self.initiate_error
        return self.upload_id

    def copy_range(self, destination, upload_id, part_number, source, byte_range):
        self._record(
            "copy_range",
            destination=destination,
            upload_id=upload_id,
            part_number=part_number,
            source=source,
            byte_range=byte_range,
        )
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            gate = self.copy_gates.get(part_number)
            if gate is not None:
                gate.wait(timeout=5)
            delay = self.copy_delays.get(part_number)
            if delay:
                time.sleep(delay)
            if part_number in self.copy_errors:
                raise self.copy_errors[part_number]
            return CopiedPart(part_number=part_number, etag=f'"etag-{part_number}"')
        finally:
            with self._lock:
                self.in_flight -= 1
            self.part_finished(part_number).set()

    def complete(self, destination, upload_id, parts):
        self._record("complete", destination=destination, upload_id=upload_id, parts=parts)
        if self.complete_error:
            raise self.complete_error
        return self.complete_response

    def abort(self, destination, upload_id):
        self._record("abort", destination=destination, upload_id=upload_id)
        if self.abort_error:
            raise self.abort_error

    def list_remaining_parts(self, destination, upload_id):
        self._record("list_remaining_parts", destination=destination, upload_id=upload_id)
        if self.list_error:
            raise self.list_error
        return list(self.remaining_parts)


@pytest.fixture
def backend():
    """Create a fresh in-memory backend."""
    return FakeBackend()


@pytest.fixture
def source():
    return Location(bucket="source-bucket", key="big/object.bin")


@pytest.fixture
def destination():
    return Location(bucket="destination-bucket", key="copies/object.bin")


@pytest.fixture
def make_request(source, destination):
    """Build a TransferRequest for the source/destination fixtures."""

    def _make(object_size=100_000_000, **kwargs):
        return TransferRequest(
            source=source,
            destination=destination,
            object_size=object_size,
            **kwargs,
        )

    return _make
