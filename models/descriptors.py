"""
===========================================================
Model metadata introspection for the annotation compiler.
===========================================================

The annotation compiler never looks at user classes directly. Every model
is first reduced to a ModelDescriptor: the model's own name plus an ordered
list of FieldDescriptor entries ``(name, declared_type, annotation)``.

Supported model sources:
    - dataclasses whose fields carry the annotation in ``field.metadata``
      (use ``sql_field`` as a shortcut)
    - SQLAlchemy declarative classes whose columns carry the annotation in
      ``Column(..., info={'sql': ...})``
    - explicit registration via ``ModelDescriptor.from_fields``
    - an existing ModelDescriptor (returned as is)

Example:
    >>> from dataclasses import dataclass
    >>> from models.descriptors import describe_model, sql_field
    >>>
    >>> @dataclass
    ... class Category:
    ...     id: int = sql_field('PRIMARY KEY AUTOINCREMENT')
    ...     name: str = sql_field('NOT NULL UNIQUE')
    >>>
    >>> descriptor = describe_model(Category)
    >>> descriptor.name, descriptor.field_names
    ('Category', ['id', 'name'])
"""

import dataclasses
import logging
import typing
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from sqlalchemy import inspect as sa_inspect

from core.config import config

logger = logging.getLogger(__name__)

# Annotation strings meaning "this field is not a column"
NO_COLUMN_ANNOTATIONS = ('', '-')


@dataclass(frozen=True)
class FieldDescriptor:
    """One field of a data model as seen by the annotation compiler.

    Attributes:
        name: Field name as declared on the model
        declared_type: Python type (or storage type name) of the field
        annotation: Raw annotation string, '' when the field has none
    """

    name: str
    declared_type: Any
    annotation: str = ''

    @property
    def is_column(self) -> bool:
        """False for fields annotated with '' or '-'."""
        return self.annotation.strip() not in NO_COLUMN_ANNOTATIONS


@dataclass(frozen=True)
class ModelDescriptor:
    """A data model reduced to its name and ordered field descriptors.

    Attributes:
        name: The model's own name (class name for introspected models)
        fields: Field descriptors in declaration order
    """

    name: str
    fields: Tuple[FieldDescriptor, ...] = ()

    @property
    def field_names(self) -> List[str]:
        """Every declared field name, annotated or not."""
        return [field.name for field in self.fields]

    def has_field(self, name: str) -> bool:
        return any(field.name == name for field in self.fields)

    @classmethod
    def from_fields(
        cls,
        name: str,
        fields: Iterable[Union[FieldDescriptor, Sequence[Any]]]
    ) -> 'ModelDescriptor':
        """Register a model explicitly from ``(name, type, annotation)`` tuples.

        Args:
            name: Model name used for foreign-key resolution and table naming
            fields: FieldDescriptor objects or 2/3-tuples

        Returns:
            ModelDescriptor with the given fields in order

        Example:
            >>> ModelDescriptor.from_fields('T', [
            ...     ('Id', int, 'PRIMARY KEY AUTOINCREMENT'),
            ...     ('Name', str, 'NOT NULL'),
            ... ])
        """
        descriptors = []
        for entry in fields:
            if isinstance(entry, FieldDescriptor):
                descriptors.append(entry)
            elif len(entry) == 3:
                descriptors.append(FieldDescriptor(entry[0], entry[1], entry[2] or ''))
            elif len(entry) == 2:
                descriptors.append(FieldDescriptor(entry[0], entry[1]))
            else:
                raise ValueError(
                    f"Field entry for model '{name}' must be (name, type[, annotation]), got {entry!r}"
                )
        return cls(name=name, fields=tuple(descriptors))


def sql_field(annotation: str, **kwargs) -> Any:
    """Declare a dataclass field carrying an annotation string.

    Args:
        annotation: Column constraint annotation, e.g. 'NOT NULL UNIQUE'
        **kwargs: Passed through to ``dataclasses.field`` (default, etc.)

    Returns:
        A dataclasses.Field with the annotation stored in its metadata
    """
    metadata = dict(kwargs.pop('metadata', None) or {})
    metadata[config.annotation_key] = annotation
    if 'default_factory' not in kwargs:
        kwargs.setdefault('default', None)
    return dataclasses.field(metadata=metadata, **kwargs)


def _describe_dataclass(model: Any, annotation_key: str) -> ModelDescriptor:
    cls = model if isinstance(model, type) else type(model)
    try:
        hints = typing.get_type_hints(cls)
    except (NameError, TypeError) as e:
        logger.debug(f"Could not resolve type hints of {cls.__name__}: {e}")
        hints = {}

    fields = []
    for field in dataclasses.fields(cls):
        fields.append(FieldDescriptor(
            name=field.name,
            declared_type=hints.get(field.name, field.type),
            annotation=field.metadata.get(annotation_key, '') or ''
        ))
    return ModelDescriptor(name=cls.__name__, fields=tuple(fields))


def _describe_sqlalchemy(mapper: Any, annotation_key: str) -> ModelDescriptor:
    fields = []
    for key, column in mapper.columns.items():
        try:
            declared_type = column.type.python_type
        except NotImplementedError:
            declared_type = None
        fields.append(FieldDescriptor(
            name=key,
            declared_type=declared_type,
            annotation=column.info.get(annotation_key, '') or ''
        ))
    return ModelDescriptor(name=mapper.class_.__name__, fields=tuple(fields))


def describe_model(model: Any, annotation_key: Optional[str] = None) -> ModelDescriptor:
    """Reduce a data model to a ModelDescriptor.

    Args:
        model: ModelDescriptor, dataclass (class or instance), or SQLAlchemy
            declarative class/instance
        annotation_key: Metadata key holding annotations (defaults to config)

    Returns:
        ModelDescriptor for the model

    Raises:
        TypeError: If the model type is not supported
    """
    if isinstance(model, ModelDescriptor):
        return model

    key = annotation_key or config.annotation_key

    if dataclasses.is_dataclass(model):
        return _describe_dataclass(model, key)

    inspection = sa_inspect(model, raiseerr=False)
    mapper = getattr(inspection, 'mapper', None)
    if mapper is not None:
        return _describe_sqlalchemy(mapper, key)

    raise TypeError(
        f"Cannot describe model of type {type(model).__name__}: expected a dataclass, "
        f"a SQLAlchemy declarative model or a ModelDescriptor"
    )


def model_name(model: Any) -> str:
    """Name of a model, or the string itself when given a plain name."""
    if isinstance(model, str):
        return model
    return describe_model(model).name
