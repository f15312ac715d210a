"""
# Recstruct: schema-driven binary records.

A schema describes a record: a name and an ordered list of typed fields.
Records are encoded in a compact binary form that doesn't describe itself,
so the reader must know the schema the data was written with.

Three main operations are defined

 1. encode()/decode(): a single record to/from a binary stream, following
    the order of the fields in the schema.

 2. create()/open(): a container file, i.e. a header embedding the schema
    followed by a sequence of records and an end marker; records are read
    back in the same order they were appended.

 3. open_with_projection(): read a container building only a subset of the
    fields, the others are left UNSET.

"""
from .enum import FieldType
from .schema import Schema, Field, parse
from .record import Record, UNSET
from .codec import encode, decode, encode_bytes, decode_bytes
from .container import Writer, Reader, create, open
from .projection import open_with_projection, resolve_projection
from .exceptions import (
    RecstructException,
    SchemaError,
    SchemaMismatchError,
    EndOfStreamError,
    UnpackException,
    MagicException,
)
