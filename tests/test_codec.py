import io

import pytest

from recstruct import codec
from recstruct.enum import FieldType
from recstruct.exceptions import SchemaMismatchError, UnpackException
from recstruct.record import Record, UNSET
from recstruct.schema import Schema, Field, parse


def test_simple_generic_functionality(string_pair_schema):
    datum = Record(string_pair_schema)
    datum.put('left', 'L')
    datum.put('right', 'R')

    os = io.BytesIO()
    codec.encode(datum, string_pair_schema, os)

    result = codec.decode(string_pair_schema, os.getvalue())

    assert result.get('left') == 'L'
    assert result.get('right') == 'R'
    assert result == datum
    assert result is not datum


def test_simple_specific_functionality(num_to_string_cls):
    NumToString = num_to_string_cls
    datum = NumToString(num=7, str='seven')

    data = codec.encode_bytes(datum, NumToString.get_schema())
    result = codec.decode_bytes(NumToString.get_schema(), data, record_cls=NumToString)

    assert isinstance(result, NumToString)
    assert result.num == 7
    assert result.str == 'seven'


def test_layout(num_to_string_schema):
    """Fields are written in schema order, without any tag."""
    data = codec.encode_bytes({'num': -1, 'str': 'ab'}, num_to_string_schema)

    assert data == b'\x01' + b'\x02ab'


def test_roundtrip_all_types():
    schema = Schema('AllTypes', [
        Field('s', FieldType.STRING),
        Field('i', FieldType.INT32),
        Field('l', FieldType.INT64),
        Field('b', FieldType.BOOLEAN),
        Field('f', FieldType.FLOAT),
        Field('d', FieldType.DOUBLE),
        Field('raw', FieldType.BYTES),
    ])
    record = Record(schema, s='', i=-2 ** 31, l=2 ** 63 - 1, b=False, f=0.25, d=-1e-300, raw=b'\x00')

    assert codec.decode_bytes(schema, codec.encode_bytes(record, schema)) == record


def test_encode_mismatch(num_to_string_schema, string_pair_schema):
    sink = io.BytesIO()

    # missing field
    with pytest.raises(SchemaMismatchError):
        codec.encode({'num': 1}, num_to_string_schema, sink)

    # extra field
    with pytest.raises(SchemaMismatchError):
        codec.encode({'num': 1, 'str': '1', 'other': 2}, num_to_string_schema, sink)

    # wrong schema
    with pytest.raises(SchemaMismatchError):
        codec.encode(Record(string_pair_schema, left='L', right='R'), num_to_string_schema, sink)

    # field never set
    with pytest.raises(SchemaMismatchError) as e:
        codec.encode(Record(num_to_string_schema, num=1), num_to_string_schema, sink)
    assert e.value.chain == ['str']

    # wrong type
    with pytest.raises(SchemaMismatchError):
        codec.encode({'num': '1', 'str': '1'}, num_to_string_schema, sink)

    with pytest.raises(SchemaMismatchError):
        codec.encode(['L', 'R'], string_pair_schema, sink)


def test_decode_with_projection(num_to_string_schema, projection_schema):
    data = codec.encode_bytes({'num': 5, 'str': 'five'}, num_to_string_schema)

    result = codec.decode_bytes(num_to_string_schema, data, projection=projection_schema)

    assert result.schema == num_to_string_schema
    assert result.num == 5
    assert result.str is UNSET
    assert not result.is_set('str')


def test_decode_projection_skips_leading_fields(num_to_string_schema):
    """The excluded field comes first, it must be consumed anyway."""
    projection = parse({'name': 'OnlyStr', 'fields': [{'name': 'str', 'type': 'string'}]})
    stream = io.BytesIO(
        codec.encode_bytes({'num': 300, 'str': 'a'}, num_to_string_schema) +
        codec.encode_bytes({'num': -300, 'str': 'b'}, num_to_string_schema)
    )

    first = codec.decode(num_to_string_schema, stream, projection=projection)
    second = codec.decode(num_to_string_schema, stream, projection=projection)

    assert (first.num, first.str) == (UNSET, 'a')
    assert (second.num, second.str) == (UNSET, 'b')


def test_decode_projection_mismatch(num_to_string_schema):
    data = codec.encode_bytes({'num': 5, 'str': 'five'}, num_to_string_schema)

    absent = parse({'name': 'NumToString', 'fields': [{'name': 'other', 'type': 'int'}]})
    with pytest.raises(SchemaMismatchError):
        codec.decode_bytes(num_to_string_schema, data, projection=absent)

    wrong_type = parse({'name': 'NumToString', 'fields': [{'name': 'num', 'type': 'long'}]})
    with pytest.raises(SchemaMismatchError):
        codec.decode_bytes(num_to_string_schema, data, projection=wrong_type)


def test_decode_truncated(num_to_string_schema):
    data = codec.encode_bytes({'num': 5, 'str': 'five'}, num_to_string_schema)

    with pytest.raises(UnpackException) as e:
        codec.decode_bytes(num_to_string_schema, data[:-1])

    assert e.value.chain == ['str']

    with pytest.raises(UnpackException):
        codec.decode_bytes(num_to_string_schema, data + b'\x00')


def test_float_roundtrip():
    schema = Schema('Reading', [Field('f', FieldType.FLOAT), Field('d', FieldType.DOUBLE)])
    datum = Record(schema, f=0.25, d=0.1)

    assert codec.decode_bytes(schema, codec.encode_bytes(datum, schema)) == datum

    # a float would read back 0.10000000149011612
    with pytest.raises(SchemaMismatchError) as e:
        codec.encode_bytes({'f': 0.1, 'd': 0.1}, schema)

    assert e.value.chain == ['f']
