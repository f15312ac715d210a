"""
# Record container

A container is a file holding a sequence of records sharing the same schema,
that is embedded into the header so that the file describes itself.

  .---------------------------------------------------------.
  | magic                  'RSC\\x01'                        |
  | metadata               count, then (key, value) pairs    |
  |                        'recstruct.schema' is mandatory   |
  | sync marker            16 random bytes                   |
  | block 1                count, size, records, sync marker |
  | block 2                ...                               |
  | ...                                                      |
  | end marker             count = 0, sync marker            |
  '---------------------------------------------------------'

Integers are varints, keys are strings and values bytes (as encoded by the
respective fields). The records are buffered by the writer and emitted as a
block when the buffer reaches the sync interval; the sync marker after each
block allows to detect corruptions.

The container is a FIFO log: the records are read back in the same order
they were appended.

A Writer is in one of the following states

 1. OPEN: records can be appended
 2. CLOSED: the end marker has been written

while a Reader is READING until the end marker is found, then EXHAUSTED.
"""
import io
import os
import logging
from typing import Dict, Optional, Type

from .enum import WriterState, ReaderState
from .schema import Schema, as_schema, parse
from .record import Record
from .streams import Stream
from .fields import StringField, BytesField
from .codec import coerce_record, encode_bytes, plan_for, decode_with_plan
from .exceptions import (
    EndOfStreamError,
    MagicException,
    UnpackException,
)
from . import varint


logger = logging.getLogger(__name__)

MAGIC = b'RSC\x01'
SYNC_SIZE = 16
DEFAULT_SYNC_INTERVAL = 16000
RESERVED_PREFIX = 'recstruct.'
SCHEMA_KEY = RESERVED_PREFIX + 'schema'

_key_field = StringField()
_value_field = BytesField()


class Writer(object):
    '''Append records to a container.

    Use it as a context manager (or call close() in a finally clause)
    otherwise the end marker is not written and the file is unreadable.'''

    def __init__(self, sink, schema, sync_interval: int = DEFAULT_SYNC_INTERVAL,
                 metadata: Optional[Dict] = None, sync_marker: Optional[bytes] = None):
        self.logger = logging.getLogger(__name__)
        self.schema = as_schema(schema)

        if sync_interval <= 0:
            raise ValueError(f'sync interval must be positive, not {sync_interval}')
        self.sync_interval = sync_interval

        self.sync_marker = sync_marker if sync_marker is not None else os.urandom(SYNC_SIZE)
        if len(self.sync_marker) != SYNC_SIZE:
            raise ValueError(f'sync marker must be {SYNC_SIZE} bytes long')

        self._state = WriterState.OPEN
        self._header_written = False
        self._metadata = {}
        self._buffer = io.BytesIO()
        self._block_count = 0
        self.count = 0

        for key, value in (metadata or {}).items():
            self.set_meta(key, value)

        self.stream = Stream(sink, flags='w')
        self.logger.debug('created writer for %r on %r' % (self.schema, self.stream))

    def __repr__(self):
        return '<%s(%s, state=%s, count=%d)>' % (
            self.__class__.__name__, self.schema.full_name, self._state.name, self.count)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __del__(self):
        if getattr(self, '_state', None) == WriterState.OPEN and hasattr(self, 'stream'):
            self.logger.warning('%r garbage collected without being closed' % self)

    @property
    def state(self) -> WriterState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state == WriterState.CLOSED

    def _check_open(self, operation):
        if self._state != WriterState.OPEN:
            raise ValueError(f'{operation}() on a closed writer')

    def set_meta(self, key: str, value) -> None:
        '''Add user metadata to the header: it's possible only before the
        header is written (i.e. before the first append).'''
        self._check_open('set_meta')

        if self._header_written:
            raise ValueError('the header has already been written')

        if not isinstance(key, str):
            raise TypeError(f'metadata key must be a string, not {type(key).__name__}')

        if key.startswith(RESERVED_PREFIX):
            raise ValueError(f'keys starting with \'{RESERVED_PREFIX}\' are reserved')

        if isinstance(value, str):
            value = value.encode('utf-8')

        if not isinstance(value, (bytes, bytearray)):
            raise TypeError(f'metadata value must be bytes or string, not {type(value).__name__}')

        self._metadata[key] = bytes(value)

    def _write_header(self):
        if self._header_written:
            return

        metadata = {SCHEMA_KEY: self.schema.to_json().encode('utf-8')}
        metadata.update(self._metadata)

        self.stream.write(MAGIC)
        self.stream.write(varint.encode_varint(len(metadata)))
        for key, value in metadata.items():
            _key_field.encode(key, self.stream)
            _value_field.encode(value, self.stream)
        self.stream.write(self.sync_marker)

        self._header_written = True
        self.logger.debug('header written with keys %s' % list(metadata.keys()))

    def _write_block(self):
        if self._block_count == 0:
            return

        payload = self._buffer.getvalue()
        self.logger.debug('writing block of %d records (%d bytes)' % (self._block_count, len(payload)))

        self.stream.write(varint.encode_varint(self._block_count))
        self.stream.write(varint.encode_varint(len(payload)))
        self.stream.write(payload)
        self.stream.write(self.sync_marker)

        self._buffer = io.BytesIO()
        self._block_count = 0

    def append(self, record) -> None:
        '''Append a Record (or a mapping with exactly the fields of the schema).'''
        self._check_open('append')

        record = coerce_record(record, self.schema)
        # encode apart so that a failure doesn't leave half a record in the block
        data = encode_bytes(record, self.schema)

        self._write_header()

        self._buffer.write(data)
        self._block_count += 1
        self.count += 1

        if self._buffer.tell() >= self.sync_interval:
            self._write_block()

    def flush(self) -> None:
        '''Write the pending records as a block and flush the underlying file.'''
        self._check_open('flush')

        self._write_header()
        self._write_block()
        self.stream.flush()

    def close(self) -> None:
        if self._state == WriterState.CLOSED:
            self.logger.debug('%r already closed' % self)
            return

        try:
            self._write_header()
            self._write_block()
            # the end marker is an empty block
            self.stream.write(varint.encode_varint(0))
            self.stream.write(self.sync_marker)
        finally:
            self._state = WriterState.CLOSED
            self.stream.close()

        self.logger.debug('closed %r' % self)


class Reader(object):
    '''Read the records of a container, in the order they were appended.'''

    def __init__(self, source, projection: Optional[Schema] = None, record_cls: Optional[Type[Record]] = None):
        self.logger = logging.getLogger(__name__)
        self.stream = Stream(source)
        self.metadata: Dict[str, bytes] = {}
        self._state = ReaderState.READING
        self._block = None
        self._remaining = 0
        self.count = 0

        try:
            self._read_header()
            self.projection = as_schema(projection) if projection is not None else None
            self.plan = plan_for(self.schema, self.projection, record_cls)
        except Exception:
            self.stream.close()
            raise

        self.record_cls = record_cls
        self.logger.debug('opened reader for %r on %r' % (self.schema, self.stream))

    def __repr__(self):
        return '<%s(%s, state=%s, count=%d)>' % (
            self.__class__.__name__, self.schema.full_name, self._state.name, self.count)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __iter__(self):
        return self

    def __next__(self) -> Record:
        if not self.has_next():
            raise StopIteration
        return self.next()

    @property
    def state(self) -> ReaderState:
        return self._state

    def _read_header(self):
        magic = self.stream.read(len(MAGIC))
        if magic != MAGIC:
            raise MagicException(message=f'bad magic {magic!r}, expected {MAGIC!r}')

        n_entries = varint.read_varint(self.stream)
        for _ in range(n_entries):
            key = _key_field.decode(self.stream)
            self.metadata[key] = _value_field.decode(self.stream)

        if SCHEMA_KEY not in self.metadata:
            raise UnpackException(chain=['header'], message=f'no \'{SCHEMA_KEY}\' in the metadata')

        self.schema = parse(self.metadata[SCHEMA_KEY])
        self.sync_marker = self.stream.read_exactly(SYNC_SIZE, chain=['header'])

    def get_meta(self, key: str, default=None) -> Optional[bytes]:
        return self.metadata.get(key, default)

    def _check_sync(self):
        sync = self.stream.read_exactly(SYNC_SIZE, chain=['block %d' % self.count])
        if sync != self.sync_marker:
            raise UnpackException(chain=['block %d' % self.count], message='sync marker mismatch')

    def _read_block(self):
        try:
            count = varint.read_varint(self.stream)
        except UnpackException as e:
            e.message = 'truncated container, end marker not found'
            raise

        if count == 0:
            self._check_sync()
            self._state = ReaderState.EXHAUSTED
            self.logger.debug('end marker found after %d records' % self.count)
            return

        size = varint.read_varint(self.stream)
        payload = self.stream.read_exactly(size, chain=['block %d' % self.count])
        self._check_sync()

        self.logger.debug('read block of %d records (%d bytes)' % (count, size))
        self._block = Stream(payload)
        self._remaining = count

    def has_next(self) -> bool:
        if self._state == ReaderState.EXHAUSTED:
            return False

        if self._remaining == 0:
            self._read_block()

        return self._remaining > 0

    def next(self) -> Record:
        if not self.has_next():
            raise EndOfStreamError(message=f'no more records after {self.count}')

        record = decode_with_plan(self.plan, self._block, record_cls=self.record_cls)
        self._remaining -= 1
        self.count += 1

        if self._remaining == 0 and self._block.read(1):
            raise UnpackException(chain=['block'], message='trailing bytes after the last record of the block')

        return record

    def close(self) -> None:
        self.stream.close()


def create(target, schema, **kwargs) -> Writer:
    '''Create a container at the given path (or file object) for the schema.'''
    return Writer(target, schema, **kwargs)


def open(source, projection: Optional[Schema] = None, record_cls: Optional[Type[Record]] = None) -> Reader:
    '''Open the container at the given path (or bytes, or file object).'''
    return Reader(source, projection=projection, record_cls=record_cls)
