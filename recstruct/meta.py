import logging


class FieldDescriptor(object):
    """Wrapper around field access of a Record related class."""

    def __init__(self, field_instance: "FieldBase", field_name: str):
        self.logger = logging.getLogger(f"{self.__module__}.{self.__class__.__name__}")
        self.field = field_instance
        self.name = field_name

    def __get__(self, instance, type=None):
        if instance is None:
            return self.field

        return instance.get(self.name)

    def __set__(self, instance, value):
        self.logger.debug("__set__ from %s for field named '%s'", instance.__class__.__name__, self.name)
        instance.put(self.name, value)


class FieldBase(object):

    def contribute_to_record(self, cls, name):
        if not getattr(cls, name, None):
            setattr(cls, name, FieldDescriptor(self, name))
        else:
            raise AttributeError(f'field {name} is already present in class {cls.__name__}')


class Meta(object):
    """Class containing metadata about the record class"""

    def __init__(self):
        self.fields = []
        self.schema = None


class MetaRecord(type):

    def __new__(cls, names, bases, attrs):
        '''Collect the fields declared in the class body, in order, and build
        the schema of the record out of them (Django docet).'''
        module = attrs.pop('__module__')
        classcell = attrs.pop('__classcell__', None)

        new_attrs = {
            '__module__': module,
        }
        if classcell is not None:
            new_attrs['__classcell__'] = classcell
        new_cls = super(MetaRecord, cls).__new__(cls, names, bases, new_attrs)

        new_cls._meta = Meta()

        cls.logger = logging.getLogger(__name__)

        # handle inheritance
        parents = [_ for _ in bases if isinstance(_, MetaRecord)]
        for parent in parents:
            for obj_name, obj in parent._meta.fields:
                setattr(new_cls, obj_name, parent.__dict__[obj_name])
                new_cls._meta.fields.append((obj_name, obj))

        for obj_name, obj in attrs.items():
            new_cls.add_to_class(obj_name, obj)

        if new_cls._meta.fields:
            new_cls._meta.schema = new_cls.build_schema()

        return new_cls

    def add_to_class(cls, name, value):
        if hasattr(value, 'contribute_to_record'):
            cls.logger.debug('contribute_to_record() found for field \'%s\'' % name)
            cls._meta.fields.append((name, value))
            value.contribute_to_record(cls, name)
        else:
            setattr(cls, name, value)

    def build_schema(cls):
        from .schema import Schema, Field

        doc = cls.__doc__.strip() if cls.__doc__ else None

        # a field can be called "namespace" too, in that case there is no namespace
        field_names = [name for name, _ in cls._meta.fields]
        namespace = getattr(cls, 'namespace', None) if 'namespace' not in field_names else None

        return Schema(
            cls.__name__,
            [Field(name, field.type, field.doc) for name, field in cls._meta.fields],
            namespace=namespace,
            doc=doc,
        )
