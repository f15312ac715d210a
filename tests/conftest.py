import copy
import logging
import os

import pytest

from recstruct import fields
from recstruct.record import Record
from recstruct.schema import parse


logging.basicConfig(level=logging.DEBUG if 'DEBUG' in os.environ else logging.INFO)


SP_SPEC = {
    'type': 'record',
    'name': 'StringPair',
    'doc': 'A pair of strings',
    'fields': [
        {'name': 'left', 'type': 'string'},
        {'name': 'right', 'type': 'string'},
    ],
}

NUM_TO_STRING_SPEC = {
    'type': 'record',
    'name': 'NumToString',
    'namespace': 'io.github.recstruct',
    'doc': 'Translation from number to string representation',
    'fields': [
        {'name': 'num', 'type': 'int'},
        {'name': 'str', 'type': 'string'},
    ],
}

STR_PROJECTION = '''
{
    "type":"record",
    "name":"NumToString",
    "namespace": "io.github.recstruct",
    "doc":"Translation from number to string representation",
    "fields":[
        {"name":"num","type":"int"}
    ]
}
'''


class NumToString(Record):
    '''Translation from number to string representation'''
    namespace = 'io.github.recstruct'

    num = fields.IntField()
    str = fields.StringField()


@pytest.fixture
def string_pair_schema():
    return parse(SP_SPEC)


@pytest.fixture
def num_to_string_schema():
    return parse(NUM_TO_STRING_SPEC)


@pytest.fixture
def projection_schema():
    return parse(STR_PROJECTION)


@pytest.fixture
def container_path(tmp_path):
    return tmp_path / 'foo.bin'


@pytest.fixture
def num_to_string_cls():
    return NumToString


@pytest.fixture
def sp_spec():
    return copy.deepcopy(SP_SPEC)


@pytest.fixture
def num_to_string_spec():
    return copy.deepcopy(NUM_TO_STRING_SPEC)
