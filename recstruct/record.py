"""
A record is the in-memory value described by a schema: an ordered mapping
from the name of each field to its value.

Records can be used generically, passing the schema at construction

    record = Record(schema)
    record.put('left', 'L')
    record['right'] = 'R'

or declaring a class with the fields as attributes, the schema is built
from the class itself (its name and the fields in declaration order)

    class NumToString(Record):
        '''Translation from number to string representation'''
        num = fields.IntField()
        str = fields.StringField()

    record = NumToString(num=1, str='1')

A field that has never been assigned (or that has been excluded by a
projection when reading) holds UNSET, that is distinguishable from any
legitimate value (None, the empty string, zero, ...).
"""
from typing import Dict, Iterator, Optional, Tuple

from .meta import MetaRecord
from .schema import Schema
from .fields import field_for_type
from .exceptions import SchemaMismatchError


class _Unset(object):
    '''Singleton marking a field without value.'''
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return 'UNSET'

    def __bool__(self):
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (_Unset, ())


UNSET = _Unset()


class Record(metaclass=MetaRecord):

    def __init__(self, schema: Optional[Schema] = None, **values):
        cls_schema = self._meta.schema
        if schema is None:
            schema = cls_schema
        elif cls_schema is not None and schema != cls_schema:
            raise SchemaMismatchError(
                message=f'{self.__class__.__name__} has schema {cls_schema!r}, not {schema!r}',
            )

        if schema is None:
            raise ValueError(f'{self.__class__.__name__} needs a schema')

        self._schema = schema
        self._values = {_.name: UNSET for _ in schema.fields()}

        for name, value in values.items():
            self.put(name, value)

    @classmethod
    def _from_values(cls, schema: Schema, values: Dict) -> "Record":
        '''Build a record trusting the values, used by the decoder.'''
        instance = cls.__new__(cls)
        instance._schema = schema
        instance._values = {_.name: values.get(_.name, UNSET) for _ in schema.fields()}
        return instance

    @classmethod
    def get_schema(cls) -> Optional[Schema]:
        return cls._meta.schema

    @property
    def schema(self) -> Schema:
        return self._schema

    def get(self, name):
        try:
            return self._values[name]
        except KeyError:
            raise SchemaMismatchError(chain=[name], message=f'no such field in {self._schema.full_name}') from None

    def put(self, name, value) -> None:
        if name not in self._values:
            raise SchemaMismatchError(chain=[name], message=f'no such field in {self._schema.full_name}')

        if value is not UNSET:
            codec = field_for_type(self._schema.field(name).type)
            try:
                codec.validate(value)
            except SchemaMismatchError as e:
                e.chain.insert(0, name)
                raise

        self._values[name] = value

    def __getitem__(self, name):
        if name not in self._values:
            raise KeyError(name)
        return self._values[name]

    def __setitem__(self, name, value):
        self.put(name, value)

    def __getattr__(self, name):
        # here only for the generic records, declared fields use descriptors
        if name.startswith('_'):
            raise AttributeError(name)

        values = self.__dict__.get('_values', {})
        if name in values:
            return values[name]

        raise AttributeError(f'\'{self.__class__.__name__}\' object has no attribute \'{name}\'')

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def keys(self):
        return self._values.keys()

    def items(self):
        return self._values.items()

    def is_set(self, name) -> bool:
        return self.get(name) is not UNSET

    def unset_fields(self) -> Tuple[str, ...]:
        return tuple(_ for _, value in self._values.items() if value is UNSET)

    def to_dict(self) -> Dict:
        return dict(self._values)

    def __eq__(self, other):
        if not isinstance(other, Record):
            return NotImplemented
        return self._schema.matches(other.schema) and self._values == other._values

    def __repr__(self):
        msg = []
        for field_name, value in self._values.items():
            msg.append('%s=%r' % (field_name, value))
        return '<%s(%s)>' % (self._schema.name, ','.join(msg))
