"""
Read-time projection: a container written with a schema can be read with
a reduced schema, containing only some of its fields.

The payload is laid out following the writer schema, so every field must be
consumed anyway; the projection only decides which ones are materialized.
The container itself is never touched.
"""
import logging
from functools import lru_cache
from typing import NamedTuple, Optional, Tuple

from .schema import Schema, Field
from .fields import Field as FieldCodec, field_for_type
from .exceptions import SchemaMismatchError


logger = logging.getLogger(__name__)


class ProjectionStep(NamedTuple):
    field: Field
    codec: FieldCodec
    keep: bool


class ProjectionPlan(NamedTuple):
    writer_schema: Schema
    projection: Optional[Schema]
    steps: Tuple[ProjectionStep, ...]

    @property
    def kept(self) -> Tuple[str, ...]:
        return tuple(_.field.name for _ in self.steps if _.keep)

    @property
    def skipped(self) -> Tuple[str, ...]:
        return tuple(_.field.name for _ in self.steps if not _.keep)


def validate_projection(writer_schema: Schema, projection: Schema) -> None:
    '''Each field of the projection must be in the writer schema, with the same type.'''
    for field in projection.fields():
        if field.name not in writer_schema:
            raise SchemaMismatchError(
                chain=[projection.full_name, field.name],
                message=f'field not present in {writer_schema.full_name}',
            )

        expected = writer_schema.field(field.name)
        if expected.type != field.type:
            raise SchemaMismatchError(
                chain=[projection.full_name, field.name],
                message=f'type {field.type.value} differs from {expected.type.value}',
            )


@lru_cache(maxsize=128)
def resolve_projection(writer_schema: Schema, projection: Optional[Schema] = None) -> ProjectionPlan:
    '''Build the list of steps needed to decode a record written with
    "writer_schema", in the writer order.'''
    if projection is not None:
        validate_projection(writer_schema, projection)

    steps = tuple(
        ProjectionStep(
            field,
            field_for_type(field.type),
            projection is None or field.name in projection,
        ) for field in writer_schema.fields()
    )

    plan = ProjectionPlan(writer_schema, projection, steps)

    if projection is not None:
        logger.debug('projection of %s: keeping %s, skipping %s' % (
            writer_schema.full_name, plan.kept, plan.skipped))

    return plan


def open_with_projection(source, projection: Schema, **kwargs):
    '''Open a container reading only the fields of the projection: the records
    returned have all the fields of the container schema, the ones excluded are UNSET.'''
    from .container import open as open_container

    return open_container(source, projection=projection, **kwargs)
