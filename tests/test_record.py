import copy

import pytest

from recstruct import fields
from recstruct.enum import FieldType
from recstruct.exceptions import SchemaMismatchError
from recstruct.record import Record, UNSET
from recstruct.schema import Field


def test_unset_sentinel():
    assert UNSET is not None
    assert UNSET != ''
    assert UNSET != 0
    assert not UNSET
    assert repr(UNSET) == 'UNSET'
    assert copy.deepcopy(UNSET) is UNSET


def test_generic_record(string_pair_schema):
    datum = Record(string_pair_schema)

    assert datum.schema is string_pair_schema
    assert datum.get('left') is UNSET
    assert datum.unset_fields() == ('left', 'right')

    datum.put('left', 'L')
    datum['right'] = 'R'

    assert datum.get('left') == 'L'
    assert datum['right'] == 'R'
    assert datum.right == 'R'
    assert datum.is_set('left')
    assert list(datum) == ['left', 'right']
    assert datum.to_dict() == {'left': 'L', 'right': 'R'}
    assert repr(datum) == "<StringPair(left='L',right='R')>"


def test_generic_record_empty_string_is_a_value(string_pair_schema):
    datum = Record(string_pair_schema, left='', right='R')

    assert datum.is_set('left')
    assert datum.left == ''
    assert datum.left is not UNSET


def test_generic_record_errors(string_pair_schema):
    datum = Record(string_pair_schema)

    with pytest.raises(SchemaMismatchError):
        datum.put('middle', 'M')

    with pytest.raises(SchemaMismatchError) as e:
        datum.put('left', 1)

    assert e.value.chain == ['left']

    with pytest.raises(KeyError):
        datum['middle']

    with pytest.raises(AttributeError):
        datum.middle

    with pytest.raises(ValueError):
        Record()


def test_declared_record(num_to_string_cls, num_to_string_schema):
    NumToString = num_to_string_cls

    assert NumToString.get_schema() == num_to_string_schema
    assert NumToString.get_schema().doc == 'Translation from number to string representation'
    assert isinstance(NumToString.num, fields.IntField)

    tmp = NumToString()
    assert tmp.num is UNSET

    tmp.num = 1
    tmp.str = '1'

    assert tmp.num == 1
    assert tmp.get('str') == '1'
    assert tmp == NumToString(num=1, str='1')
    assert tmp != NumToString(num=2, str='2')

    with pytest.raises(SchemaMismatchError):
        tmp.num = 'one'


def test_declared_record_equals_generic(num_to_string_cls, num_to_string_schema):
    assert num_to_string_cls(num=3, str='3') == Record(num_to_string_schema, num=3, str='3')


def test_declared_record_wrong_schema(num_to_string_cls, string_pair_schema):
    with pytest.raises(SchemaMismatchError):
        num_to_string_cls(string_pair_schema)


def test_inheritance():
    '''subclasses inherit fields'''
    class Father(Record):
        field_a = fields.StringField()
        field_b = fields.IntField()

    class Son(Father):
        field_c = fields.BytesField()

    schema = Son.get_schema()

    assert schema.name == 'Son'
    assert schema.fields() == (
        Field('field_a', FieldType.STRING),
        Field('field_b', FieldType.INT32),
        Field('field_c', FieldType.BYTES),
    )
    assert Father.get_schema().field_names() == ('field_a', 'field_b')

    son = Son(field_a='a', field_b=1, field_c=b'c')
    assert son.field_c == b'c'


def test_field_redefinition():
    class Father(Record):
        a = fields.StringField()

    with pytest.raises(AttributeError):
        class Son(Father):
            a = fields.IntField()


def test_field_named_namespace():
    class Tagged(Record):
        namespace = fields.StringField()
        value = fields.IntField()

    schema = Tagged.get_schema()

    assert schema.namespace is None
    assert schema.full_name == 'Tagged'
    assert schema.field_names() == ('namespace', 'value')

    tagged = Tagged(namespace='io.github', value=1)
    assert tagged.namespace == 'io.github'
