"""
The schema describes the shape of a record: a name and an ordered list
of typed fields.

It's parsed from a declarative description, i.e. a dictionary (or its JSON
serialization) like the following

    {
        "type": "record",
        "name": "StringPair",
        "doc": "A pair of strings",
        "fields": [
            {"name": "left", "type": "string"},
            {"name": "right", "type": "string"}
        ]
    }

The same description is embedded into the container files so that a reader
doesn't need any out-of-band information.
"""
import json
import logging
from typing import Dict, NamedTuple, Optional, Sequence, Tuple

from .enum import FieldType
from .exceptions import SchemaError


logger = logging.getLogger(__name__)

RECORD_TYPE = 'record'


class Field(NamedTuple):
    name: str
    type: FieldType
    doc: Optional[str] = None

    def __eq__(self, other):
        if not isinstance(other, Field):
            return NotImplemented
        return (self.name, self.type) == (other.name, other.type)

    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __hash__(self):
        return hash((self.name, self.type))

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.name}:{self.type.value})>'

    def to_description(self) -> Dict:
        description = {'name': self.name, 'type': self.type.value}
        if self.doc:
            description['doc'] = self.doc
        return description


class Schema(object):
    '''Immutable description of a record: two schemas are equal when they have
    the same name and the same fields (by name and type) in the same order.'''

    __slots__ = ('_name', '_namespace', '_doc', '_fields', '_index')

    def __init__(self, name: str, fields: Sequence[Field], namespace: Optional[str] = None, doc: Optional[str] = None):
        if not isinstance(name, str) or not name:
            raise SchemaError(message='the schema must have a name')

        if namespace is not None and not isinstance(namespace, str):
            raise SchemaError(chain=[name], message=f'the namespace must be a string, not {type(namespace).__name__}')

        fields = tuple(fields)
        index = {}
        for position, field in enumerate(fields):
            if not isinstance(field, Field):
                raise SchemaError(chain=[name], message=f'{field!r} is not a Field')
            if field.name in index:
                raise SchemaError(chain=[name, field.name], message='duplicate field name')
            index[field.name] = position

        object.__setattr__(self, '_name', name)
        object.__setattr__(self, '_namespace', namespace)
        object.__setattr__(self, '_doc', doc)
        object.__setattr__(self, '_fields', fields)
        object.__setattr__(self, '_index', index)

    def __setattr__(self, name, value):
        raise AttributeError(f'{self.__class__.__name__} is immutable')

    def __delattr__(self, name):
        raise AttributeError(f'{self.__class__.__name__} is immutable')

    @property
    def name(self) -> str:
        return self._name

    @property
    def namespace(self) -> Optional[str]:
        return self._namespace

    @property
    def doc(self) -> Optional[str]:
        return self._doc

    @property
    def full_name(self) -> str:
        return f'{self._namespace}.{self._name}' if self._namespace else self._name

    def fields(self) -> Tuple[Field, ...]:
        return self._fields

    def field_names(self) -> Tuple[str, ...]:
        return tuple(_.name for _ in self._fields)

    def field(self, name: str) -> Field:
        try:
            return self._fields[self._index[name]]
        except KeyError:
            raise KeyError(f'no field named \'{name}\' in schema \'{self.full_name}\'') from None

    def position(self, name: str) -> int:
        return self._index[name]

    def __contains__(self, name):
        return name in self._index

    def __len__(self):
        return len(self._fields)

    def __iter__(self):
        return iter(self._fields)

    def matches(self, other: "Schema") -> bool:
        '''Same fields in the same order, whatever the name of the record.'''
        return self._fields == other.fields()

    def __eq__(self, other):
        if not isinstance(other, Schema):
            return NotImplemented
        return self.full_name == other.full_name and self.matches(other)

    def __hash__(self):
        return hash((self.full_name, self._fields))

    def __repr__(self):
        return '<%s(%s: %s)>' % (
            self.__class__.__name__,
            self.full_name,
            ', '.join('%s:%s' % (_.name, _.type.value) for _ in self._fields),
        )

    def to_description(self) -> Dict:
        description = {
            'type': RECORD_TYPE,
            'name': self._name,
        }
        if self._namespace:
            description['namespace'] = self._namespace
        if self._doc:
            description['doc'] = self._doc
        description['fields'] = [_.to_description() for _ in self._fields]

        return description

    def to_json(self) -> str:
        return json.dumps(self.to_description(), separators=(',', ':'))


def parse_type(tag, chain) -> FieldType:
    if isinstance(tag, FieldType):
        return tag

    # complex types like {"type": "array", ...} or unions like ["null", "int"]
    if not isinstance(tag, str):
        raise SchemaError(chain=chain, message=f'unsupported type {tag!r}')

    try:
        return FieldType(tag)
    except ValueError:
        raise SchemaError(chain=chain, message=f'unknown type \'{tag}\'') from None


def parse_field(description, chain) -> Field:
    if not isinstance(description, dict):
        raise SchemaError(chain=chain, message=f'field description must be an object, not {type(description).__name__}')

    name = description.get('name')
    if not isinstance(name, str) or not name:
        raise SchemaError(chain=chain, message='field without a name')

    if 'type' not in description:
        raise SchemaError(chain=chain + [name], message='field without a type')

    return Field(name, parse_type(description['type'], chain + [name]), description.get('doc'))


def parse(description) -> Schema:
    '''Build a Schema from its description, passed as a dictionary or as
    a JSON string.'''
    if isinstance(description, (str, bytes)):
        try:
            description = json.loads(description)
        except ValueError as e:
            raise SchemaError(message=f'the description is not valid JSON: {e}') from e

    if not isinstance(description, dict):
        raise SchemaError(message=f'the description must be an object, not {type(description).__name__}')

    kind = description.get('type', RECORD_TYPE)
    if kind != RECORD_TYPE:
        raise SchemaError(message=f'only \'{RECORD_TYPE}\' schemas are supported, not {kind!r}')

    name = description.get('name')
    if not isinstance(name, str) or not name:
        raise SchemaError(message='the schema must have a name')

    fields = description.get('fields')
    if not isinstance(fields, list):
        raise SchemaError(chain=[name], message='the schema must have a list of fields')

    namespace = description.get('namespace')
    if namespace is not None and not isinstance(namespace, str):
        raise SchemaError(chain=[name], message='the namespace must be a string')

    schema = Schema(
        name,
        [parse_field(_, [name]) for _ in fields],
        namespace=namespace,
        doc=description.get('doc'),
    )

    logger.debug('parsed %r' % schema)

    return schema


def as_schema(obj) -> Schema:
    '''Accept a Schema, its description or a record class declaring fields.'''
    if isinstance(obj, Schema):
        return obj

    if hasattr(obj, 'get_schema'):
        schema = obj.get_schema()
        if schema is None:
            raise SchemaError(message=f'{obj.__name__} doesn\'t declare any field')
        return schema

    return parse(obj)
