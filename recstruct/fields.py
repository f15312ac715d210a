"""
A Field knows how to encode/decode a single value of a given type to/from
a binary stream. Nothing about the value is written beside the value
itself: the caller must know the schema to read it back.

The same classes are used to declare the fields of a record class

    class StringPair(Record):
        left  = fields.StringField()
        right = fields.StringField()
"""
import logging
import math
import struct
from functools import lru_cache

from .enum import FieldType
from .meta import FieldBase
from .exceptions import SchemaMismatchError, UnpackException
from . import varint


class Field(FieldBase):
    """Base class to subclass from"""
    type: FieldType = None

    def __init__(self, doc=None):
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.doc = doc

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, self.type.value)

    def validate(self, value) -> None:
        '''Raise SchemaMismatchError if the value can't be encoded by this field.'''
        raise NotImplementedError(f"method {self.__class__.__name__}.validate() not implemented")

    def _mismatch(self, value, expected):
        return SchemaMismatchError(
            message=f'{self.type.value} field expects {expected}, got {type(value).__name__} {value!r}',
        )

    def encode(self, value, stream) -> None:
        raise NotImplementedError(f"method {self.__class__.__name__}.encode() not implemented")

    def decode(self, stream):
        raise NotImplementedError(f"method {self.__class__.__name__}.decode() not implemented")

    def skip(self, stream) -> None:
        '''Consume the value without building it.'''
        self.decode(stream)


class IntField(Field):
    """Signed integer encoded as a zig-zag varint."""
    type = FieldType.INT32
    bits = 32

    @property
    def min(self):
        return -(1 << (self.bits - 1))

    @property
    def max(self):
        return (1 << (self.bits - 1)) - 1

    def validate(self, value):
        # bool is a subclass of int but it's not what we want here
        if not isinstance(value, int) or isinstance(value, bool):
            raise self._mismatch(value, 'an integer')

        if not self.min <= value <= self.max:
            raise SchemaMismatchError(message=f'{value} out of range for a {self.bits}-bit integer')

    def encode(self, value, stream):
        stream.write(varint.encode_zigzag(value))

    def decode(self, stream):
        value = varint.read_zigzag(stream, bits=self.bits)

        if not self.min <= value <= self.max:
            raise UnpackException(message=f'{value} out of range for a {self.bits}-bit integer')

        return value

    def skip(self, stream):
        varint.read_varint(stream, bits=self.bits)


class LongField(IntField):
    type = FieldType.INT64
    bits = 64


class BooleanField(Field):
    type = FieldType.BOOLEAN

    def validate(self, value):
        if not isinstance(value, bool):
            raise self._mismatch(value, 'a boolean')

    def encode(self, value, stream):
        stream.write(b'\x01' if value else b'\x00')

    def decode(self, stream):
        raw = stream.read_exactly(1)
        if raw not in (b'\x00', b'\x01'):
            raise UnpackException(message=f'invalid boolean {raw!r}')

        return raw == b'\x01'

    def skip(self, stream):
        stream.skip(1)


class StructField(Field):
    """
    Fixed size value, packed/unpacked with the struct module.

    The byte order is part of the format and is always little endian.
    """
    byte_order = '<'

    def __init__(self, format, **kw):
        self.format = format
        super().__init__(**kw)

    def get_format(self):
        return '%s%s' % (self.byte_order, self.format)

    @property
    def size(self):
        return struct.calcsize(self.get_format())

    def encode(self, value, stream):
        stream.write(struct.pack(self.get_format(), value))

    def decode(self, stream):
        raw = stream.read_exactly(self.size)
        try:
            return struct.unpack(self.get_format(), raw)[0]
        except struct.error as e:
            self.logger.error(e)
            raise UnpackException(message=str(e))

    def skip(self, stream):
        stream.skip(self.size)


class FloatField(StructField):
    type = FieldType.FLOAT
    format_char = 'f'

    def __init__(self, **kw):
        super().__init__(self.format_char, **kw)

    def validate(self, value):
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise self._mismatch(value, 'a number')

        try:
            packed = struct.unpack(self.get_format(), struct.pack(self.get_format(), value))[0]
        except (struct.error, OverflowError):
            raise SchemaMismatchError(message=f'{value} out of range for a {self.type.value}')

        if math.isnan(value):
            return

        # what doesn't fit exactly would be read back as a different value
        if packed != value:
            raise SchemaMismatchError(message=f'{value!r} is not representable exactly as a {self.type.value}')


class DoubleField(FloatField):
    type = FieldType.DOUBLE
    format_char = 'd'


class BytesField(Field):
    """Represent a contiguous chunk of bytes prefixed by its length."""
    type = FieldType.BYTES

    def validate(self, value):
        if not isinstance(value, (bytes, bytearray)):
            raise self._mismatch(value, 'bytes')

    def _to_raw(self, value) -> bytes:
        return bytes(value)

    def _from_raw(self, raw: bytes):
        return raw

    def encode(self, value, stream):
        raw = self._to_raw(value)
        stream.write(varint.encode_varint(len(raw)))
        stream.write(raw)

    def _read_length(self, stream):
        length = varint.read_varint(stream)
        self.logger.debug('reading %d bytes for %r' % (length, self))
        return length

    def decode(self, stream):
        return self._from_raw(stream.read_exactly(self._read_length(stream)))

    def skip(self, stream):
        stream.skip(self._read_length(stream))


class StringField(BytesField):
    type = FieldType.STRING

    def validate(self, value):
        if not isinstance(value, str):
            raise self._mismatch(value, 'a string')

    def _to_raw(self, value):
        return value.encode('utf-8')

    def _from_raw(self, raw):
        try:
            return raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise UnpackException(message=f'invalid UTF-8 string: {e}') from e


FIELD_CLASSES = {
    _.type: _ for _ in (
        StringField,
        IntField,
        LongField,
        BooleanField,
        FloatField,
        DoubleField,
        BytesField,
    )
}


@lru_cache(maxsize=None)
def field_for_type(field_type: FieldType) -> Field:
    try:
        return FIELD_CLASSES[field_type]()
    except KeyError:
        raise ValueError(f'no field available for type {field_type!r}') from None
