"""
Encoding and decoding of records.

A record is encoded as the concatenation of its fields, in the order the
schema declares them: no tag, no length, no field name is written, so the
schema must be known when decoding.

When decoding it's possible to pass a projection, i.e. a schema containing
a subset of the fields: the full payload is consumed anyway but only the
fields of the projection are built, the others are left UNSET.
"""
import io
import logging
from collections.abc import Mapping
from functools import lru_cache
from typing import Optional, Tuple, Type

from .schema import Schema
from .fields import Field, field_for_type
from .record import Record, UNSET
from .streams import Stream
from .projection import ProjectionPlan, resolve_projection
from .exceptions import SchemaMismatchError, UnpackException


logger = logging.getLogger(__name__)


@lru_cache(maxsize=128)
def get_codecs(schema: Schema) -> Tuple[Tuple[str, Field], ...]:
    '''It returns a couple (name, field codec) for each field of the schema.'''
    return tuple((_.name, field_for_type(_.type)) for _ in schema.fields())


def _as_stream(obj, flags) -> Stream:
    return obj if isinstance(obj, Stream) else Stream(obj, flags=flags)


def coerce_record(record, schema: Schema) -> Record:
    '''Accept a Record matching the schema or a mapping with exactly its fields.'''
    if isinstance(record, Record):
        if not record.schema.matches(schema):
            raise SchemaMismatchError(
                message=f'record {record.schema!r} doesn\'t match {schema!r}',
            )
        return record

    if isinstance(record, Mapping):
        missing = [_ for _ in schema.field_names() if _ not in record]
        extra = [_ for _ in record if _ not in schema]
        if missing or extra:
            raise SchemaMismatchError(
                chain=[schema.full_name],
                message=f'missing fields {missing}, unknown fields {extra}',
            )
        result = Record(schema)
        for name, value in record.items():
            result.put(name, value)
        return result

    raise SchemaMismatchError(message=f'cannot encode {type(record).__name__} as a record')


def encode(record, schema: Schema, sink) -> None:
    '''Write the binary representation of the record into the sink (a Stream
    or a writable file object).'''
    record = coerce_record(record, schema)
    stream = _as_stream(sink, 'w')

    for field_name, codec in get_codecs(schema):
        value = record.get(field_name)
        if value is UNSET:
            raise SchemaMismatchError(chain=[field_name], message='field has no value')

        try:
            codec.validate(value)
        except SchemaMismatchError as e:
            e.chain.insert(0, field_name)
            raise

        codec.encode(value, stream)


def decode(schema: Schema, source, projection: Optional[Schema] = None,
           record_cls: Optional[Type[Record]] = None) -> Record:
    '''Read a record written with "schema" from the source (a Stream, a readable
    file object or bytes).

    With a projection only its fields are built, the returned record has the
    shape of "schema" with the excluded fields UNSET. With a record class, its
    schema acts as the projection and an instance of it is returned.'''
    plan = plan_for(schema, projection, record_cls)
    return decode_with_plan(plan, _as_stream(source, 'r'), record_cls=record_cls)


def plan_for(schema, projection, record_cls) -> ProjectionPlan:
    if record_cls is not None:
        cls_schema = record_cls.get_schema()
        if cls_schema is None:
            raise ValueError(f'{record_cls.__name__} doesn\'t declare any field')
        if projection is not None and not projection.matches(cls_schema):
            raise SchemaMismatchError(message=f'projection {projection!r} differs from {cls_schema!r}')
        projection = cls_schema

    return resolve_projection(schema, projection)


def decode_with_plan(plan: ProjectionPlan, stream: Stream, record_cls: Optional[Type[Record]] = None) -> Record:
    values = {}
    for step in plan.steps:
        try:
            if step.keep:
                values[step.field.name] = step.codec.decode(stream)
            else:
                step.codec.skip(stream)
        except UnpackException as e:
            e.chain.insert(0, step.field.name)
            raise

    if record_cls is not None:
        return record_cls._from_values(record_cls.get_schema(), values)

    return Record._from_values(plan.writer_schema, values)


def encode_bytes(record, schema: Schema) -> bytes:
    buffer = io.BytesIO()
    encode(record, schema, buffer)
    return buffer.getvalue()


def decode_bytes(schema: Schema, data: bytes, **kwargs) -> Record:
    stream = Stream(data)
    record = decode(schema, stream, **kwargs)

    trailing = stream.read()
    if trailing:
        raise UnpackException(message=f'{len(trailing)} trailing bytes after the record')

    return record
