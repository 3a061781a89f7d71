"""Incremental zip parsing over a forward-only byte stream.

S3 bodies cannot seek, so the central directory at the end of the archive is
never consulted. Members are read from their local file headers in archive
order and each body is decompressed on demand while it is being uploaded.
"""

import io
import logging
import struct
import zlib
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import MalformedArchive

logger = logging.getLogger(__name__)

LOCAL_FILE_HEADER = b"PK\x03\x04"
CENTRAL_DIRECTORY_HEADER = b"PK\x01\x02"
END_OF_CENTRAL_DIRECTORY = b"PK\x05\x06"
ZIP64_END_OF_CENTRAL_DIRECTORY = b"PK\x06\x06"
DATA_DESCRIPTOR = b"PK\x07\x08"

# Signature, version, flags, method, mtime, mdate, crc, sizes, name and extra lengths
_LOCAL_HEADER = struct.Struct("<4sHHHHHIIIHH")
_EXTRA_HEADER = struct.Struct("<HH")
_ZIP64_EXTRA_ID = 0x0001
_ZIP64_MARKER = 0xFFFFFFFF

FLAG_ENCRYPTED = 0x0001
FLAG_DATA_DESCRIPTOR = 0x0008
FLAG_UTF8 = 0x0800

METHOD_STORED = 0
METHOD_DEFLATED = 8

DEFAULT_CHUNK_SIZE = 64 * 1024


class EntryType(Enum):
  """Kind of archive member."""

  FILE = "File"
  DIRECTORY = "Directory"


class _ByteSource:
  """Forward-only reader with a small pushback buffer."""

  def __init__(self, stream: Any, chunk_size: int) -> None:
    self._stream = stream
    self._chunk_size = chunk_size
    self._buffer = bytearray()
    self._eof = False
    self.consumed = 0

  def _fill(self, size: int) -> bool:
    while len(self._buffer) < size and not self._eof:
      chunk = self._stream.read(self._chunk_size)
      if not chunk:
        self._eof = True
      else:
        self._buffer += chunk
    return len(self._buffer) >= size

  def at_eof(self) -> bool:
    return not self._fill(1)

  def read_exact(self, size: int) -> bytes:
    if not self._fill(size):
      raise MalformedArchive(
        f"Unexpected end of archive at offset {self.consumed + len(self._buffer)}"
      )
    data = bytes(self._buffer[:size])
    del self._buffer[:size]
    self.consumed += size
    return data

  def read_some(self, limit: int) -> bytes:
    """Up to ``limit`` bytes, b"" only at end of stream."""
    if not self._buffer:
      self._fill(1)
    data = bytes(self._buffer[:limit])
    del self._buffer[: len(data)]
    self.consumed += len(data)
    return data

  def unread(self, data: bytes) -> None:
    self._buffer[:0] = data
    self.consumed -= len(data)


@dataclass
class _LocalHeader:
  path: str
  flags: int
  method: int
  crc: int
  compressed_size: int | None
  uncompressed_size: int | None
  zip64: bool

  @property
  def has_data_descriptor(self) -> bool:
    return bool(self.flags & FLAG_DATA_DESCRIPTOR)


class EntryBody(io.RawIOBase):
  """Decompressed body of one archive member.

  Only valid until the extractor moves on to the next member, at which point
  any unread bytes are drained and the body is closed.
  """

  def __init__(self, source: _ByteSource, header: _LocalHeader, chunk_size: int) -> None:
    super().__init__()
    self._source = source
    self._header = header
    self._chunk_size = chunk_size
    self._remaining = header.compressed_size
    self._decompressor = (
      zlib.decompressobj(-zlib.MAX_WBITS) if header.method == METHOD_DEFLATED else None
    )
    self._pending = b""
    self._crc = 0
    self._size = 0
    self._finished = False

  def readable(self) -> bool:
    return True

  def readinto(self, buffer: Any) -> int:
    if self.closed:
      raise ValueError(f"Body of {self._header.path} is no longer readable")
    while not self._pending and not self._finished:
      self._pending = self._next_chunk()
    count = min(len(buffer), len(self._pending))
    buffer[:count] = self._pending[:count]
    self._pending = self._pending[count:]
    return count

  def read(self, size: int = -1) -> bytes:
    """Return ``size`` bytes, or fewer only once the member is exhausted."""
    if size is None or size < 0:
      return self.readall()
    # s3transfer takes a short read as the end of a non-seekable stream
    chunks = []
    remaining = size
    while remaining:
      data = super().read(remaining)
      if not data:
        break
      chunks.append(data)
      remaining -= len(data)
    return b"".join(chunks)

  def drain(self) -> None:
    """Consume the rest of the member and close the body."""
    while not self._finished:
      self._next_chunk()
    self._pending = b""
    self.close()

  def _next_chunk(self) -> bytes:
    if self._decompressor is None:
      data = self._next_stored_chunk()
    else:
      data = self._next_deflated_chunk()
    if data:
      self._crc = zlib.crc32(data, self._crc)
      self._size += len(data)
    return data

  def _next_stored_chunk(self) -> bytes:
    if self._remaining == 0:
      self._finish()
      return b""
    data = self._source.read_some(min(self._remaining, self._chunk_size))
    if not data:
      raise MalformedArchive(f"Truncated data for {self._header.path}")
    self._remaining -= len(data)
    return data

  def _next_deflated_chunk(self) -> bytes:
    if self._decompressor.eof:
      self._finish()
      return b""

    raw = self._decompressor.unconsumed_tail
    if not raw:
      limit = self._chunk_size
      if self._remaining is not None:
        limit = min(limit, self._remaining)
      raw = self._source.read_some(limit) if limit else b""
      if self._remaining is not None:
        self._remaining -= len(raw)

    # An empty feed still flushes output held back by the max_length cap
    try:
      data = self._decompressor.decompress(raw, self._chunk_size)
    except zlib.error as e:
      raise MalformedArchive(f"Corrupt deflate data for {self._header.path}: {e}") from e

    if not raw and not data and not self._decompressor.eof:
      raise MalformedArchive(f"Truncated deflate stream for {self._header.path}")

    if self._decompressor.eof:
      leftover = self._decompressor.unused_data
      if leftover:
        # Bytes past the end of the deflate stream belong to what follows
        self._source.unread(leftover)
        if self._remaining is not None:
          self._remaining += len(leftover)
      if self._remaining:
        raise MalformedArchive(
          f"Deflate stream for {self._header.path} ended {self._remaining} bytes early"
        )
    return data

  def _finish(self) -> None:
    expected_crc = self._header.crc
    expected_size = self._header.uncompressed_size
    # Sizes outside ZIP64 are stored modulo 2**32
    mask = 0xFFFFFFFFFFFFFFFF if self._header.zip64 else 0xFFFFFFFF

    if self._header.has_data_descriptor:
      expected_crc, expected_size = self._read_data_descriptor()

    if self._crc != expected_crc:
      raise MalformedArchive(
        f"CRC mismatch for {self._header.path}: "
        f"expected {expected_crc:08x}, got {self._crc:08x}"
      )
    if expected_size is not None and (self._size & mask) != (expected_size & mask):
      raise MalformedArchive(
        f"Size mismatch for {self._header.path}: "
        f"expected {expected_size}, got {self._size}"
      )
    self._finished = True

  def _read_data_descriptor(self) -> tuple[int, int]:
    first = self._source.read_exact(4)
    if first == DATA_DESCRIPTOR:
      first = self._source.read_exact(4)
    (crc,) = struct.unpack("<I", first)
    if self._header.zip64:
      _, uncompressed = struct.unpack("<QQ", self._source.read_exact(16))
    else:
      _, uncompressed = struct.unpack("<II", self._source.read_exact(8))
    return crc, uncompressed


@dataclass
class ZipEntry:
  """One member of the archive."""

  path: str
  type: EntryType
  body: EntryBody

  @property
  def is_file(self) -> bool:
    return self.type is EntryType.FILE

  def drain(self) -> None:
    self.body.drain()


class ZipExtractor:
  """Yield archive members from a stream without buffering the archive."""

  def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
    self.chunk_size = chunk_size

  def extract(self, stream: Any) -> Iterator[ZipEntry]:
    """Iterate the members of the zip archive read from ``stream``.

    Single pass and not restartable. Each entry's body must be consumed or
    drained before the next entry is requested; anything left unread is
    drained automatically when iteration resumes.

    Raises:
      MalformedArchive: When the stream is not a readable zip archive.
    """
    source = _ByteSource(stream, self.chunk_size)
    if source.at_eof():
      raise MalformedArchive("Archive stream is empty")

    previous: ZipEntry | None = None
    while True:
      if previous is not None:
        previous.drain()
        previous = None

      signature = source.read_exact(4)
      if signature in (
        CENTRAL_DIRECTORY_HEADER,
        END_OF_CENTRAL_DIRECTORY,
        ZIP64_END_OF_CENTRAL_DIRECTORY,
      ):
        return
      if signature == DATA_DESCRIPTOR and source.consumed == 4:
        # Spanning marker written by some tools at the very start
        continue
      if signature != LOCAL_FILE_HEADER:
        raise MalformedArchive(
          f"Unexpected signature {signature.hex()} at offset {source.consumed - 4}"
        )

      header = self._read_local_header(source)
      entry_type = EntryType.DIRECTORY if header.path.endswith("/") else EntryType.FILE
      logger.debug(f"Found {entry_type.value}: {header.path}")
      previous = ZipEntry(
        path=header.path,
        type=entry_type,
        body=EntryBody(source, header, self.chunk_size),
      )
      yield previous

  def _read_local_header(self, source: _ByteSource) -> _LocalHeader:
    fixed = LOCAL_FILE_HEADER + source.read_exact(_LOCAL_HEADER.size - 4)
    (
      _,
      _version,
      flags,
      method,
      _mtime,
      _mdate,
      crc,
      compressed_size,
      uncompressed_size,
      name_length,
      extra_length,
    ) = _LOCAL_HEADER.unpack(fixed)

    raw_name = source.read_exact(name_length)
    extra = source.read_exact(extra_length)
    path = raw_name.decode("utf-8" if flags & FLAG_UTF8 else "cp437")

    if flags & FLAG_ENCRYPTED:
      raise MalformedArchive(f"Encrypted member {path} is not supported")
    if method not in (METHOD_STORED, METHOD_DEFLATED):
      raise MalformedArchive(f"Unsupported compression method {method} for {path}")

    zip64 = False
    if _ZIP64_MARKER in (compressed_size, uncompressed_size):
      zip64 = True
      uncompressed_size, compressed_size = self._zip64_sizes(
        extra, uncompressed_size, compressed_size, path
      )

    sizes_known = not flags & FLAG_DATA_DESCRIPTOR
    if not sizes_known and method == METHOD_STORED:
      raise MalformedArchive(
        f"Stored member {path} has no size in its header and cannot be streamed"
      )

    return _LocalHeader(
      path=path,
      flags=flags,
      method=method,
      crc=crc,
      compressed_size=compressed_size if sizes_known else None,
      uncompressed_size=uncompressed_size if sizes_known else None,
      zip64=zip64,
    )

  @staticmethod
  def _zip64_sizes(
    extra: bytes, uncompressed_size: int, compressed_size: int, path: str
  ) -> tuple[int, int]:
    offset = 0
    while offset + _EXTRA_HEADER.size <= len(extra):
      field_id, field_size = _EXTRA_HEADER.unpack_from(extra, offset)
      offset += _EXTRA_HEADER.size
      data = extra[offset : offset + field_size]
      offset += field_size
      if field_id != _ZIP64_EXTRA_ID:
        continue

      values = list(struct.unpack(f"<{len(data) // 8}Q", data[: len(data) // 8 * 8]))
      try:
        if uncompressed_size == _ZIP64_MARKER:
          uncompressed_size = values.pop(0)
        if compressed_size == _ZIP64_MARKER:
          compressed_size = values.pop(0)
      except IndexError as e:
        raise MalformedArchive(f"Truncated ZIP64 extra field for {path}") from e
      return uncompressed_size, compressed_size

    # Streaming writers mark sizes as ZIP64 and defer them to the data descriptor
    return uncompressed_size, compressed_size
