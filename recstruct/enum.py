from enum import Enum, auto


class FieldType(Enum):
    '''The primitive types a field can have, valued with the tag used
    into the schema description.'''
    STRING  = 'string'
    INT32   = 'int'
    INT64   = 'long'
    BOOLEAN = 'boolean'
    FLOAT   = 'float'
    DOUBLE  = 'double'
    BYTES   = 'bytes'


class WriterState(Enum):
    OPEN   = auto()
    CLOSED = auto()


class ReaderState(Enum):
    READING   = auto()
    EXHAUSTED = auto()
