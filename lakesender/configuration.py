# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""A small typed configuration system.

Config classes declare class-level Field objects.  The Base constructor
ingests a dictionary (usually parsed from YAML), type-checks every value,
fills in defaults, and assigns the results to the instance."""

import abc
from typing import Any, Dict, Generic, Optional, Type, TypeVar, cast


class ConfigError(Exception):
  """A base class for config errors.

  Each subclass provides a meaningful, human-readable string representation in
  English.
  """

  def __init__(self, class_ref, field_name, field):
    self.class_ref = class_ref
    """A reference to the config class that the error refers to."""

    self.class_name = class_ref.__name__
    """The name of the config class that the error refers to."""

    self.field_name = field_name
    """The name of the field that the error refers to."""

    self.field = field
    """The Field metadata object that the error refers to."""


class UnrecognizedField(ConfigError):
  """An error raised when an unrecognized field is encountered in the input."""

  def __str__(self):
    return '{} contains unrecognized field: {}'.format(
        self.class_name, self.field_name)

class WrongType(ConfigError):
  """An error raised when a field in the input has the wrong type."""

  def __str__(self):
    return 'In {}, {} field requires a {}'.format(
        self.class_name, self.field_name, self.field.get_type_name())

class MalformedField(ConfigError):
  """An error raised when a field is malformed."""

  def __init__(self, class_ref, field_name, field, reason):
    super().__init__(class_ref, field_name, field)
    self.reason = reason

  def __str__(self):
    return 'In {}, {} field is malformed: {}'.format(
        self.class_name, self.field_name, self.reason)


class ValidatingType(metaclass=abc.ABCMeta):
  """A base wrapper type that validates the input against a limited range.

  Subclasses must implement a static validate() method that raises TypeError
  if the input type is wrong or ValueError if it fails validation, and a
  static name() method with a human-readable name for the type.
  """

  @staticmethod
  @abc.abstractmethod
  def validate(value: Any) -> None:
    pass

  @staticmethod
  @abc.abstractmethod
  def name() -> str:
    pass


class PositiveInt(ValidatingType, int):
  """A wrapper that can be used in Field() to require an integer above zero."""

  @staticmethod
  def name() -> str:
    return 'positive integer'

  @staticmethod
  def validate(value):
    # bool is a subclass of int, but "true" is not a size.
    if type(value) is not int:
      raise TypeError()
    if value <= 0:
      raise ValueError('{} is not greater than zero'.format(value))


class PositiveNumber(ValidatingType, float):
  """A wrapper that can be used in Field() to require a number above zero."""

  @staticmethod
  def name() -> str:
    return 'positive number'

  @staticmethod
  def validate(value):
    if type(value) not in (int, float):
      raise TypeError()
    if value <= 0:
      raise ValueError('{} is not greater than zero'.format(value))


# For a Field with type=PositiveInt, FieldType is PositiveInt.
FieldType = TypeVar('FieldType')

class Field(Generic[FieldType]):
  """A container for metadata about individual config fields."""

  def __init__(self,
               type: Optional[Type[FieldType]],
               default: Optional[FieldType] = None) -> None:
    """
    Args:
        type (class): The ValidatingType values of this field must satisfy.
        default: The default value if the field is not specified.
    """
    self.type: Optional[Type] = type
    self.default: Optional[FieldType] = default

  def get_type_name(self) -> str:
    """Get a human-readable string for the name of self.type."""

    if self.type is None:
      # Only here to allow generic handling of UnrecognizedField errors.
      return 'None'
    return self.type.name()

  def cast(self) -> FieldType:
    """Called on every Field instance where it is assigned to a configuration
    class property.  For example:

    class FooConfig(configuration.Base):
      size = configuration.Field(PositiveInt, default=4).cast()

    At the instance level the Base constructor replaces the Field with the
    config value.  Returning self typed as FieldType lets mypy see instance
    properties as their value type rather than as Field."""
    return cast(FieldType, self)


class Base(object):
  """A base class for config objects.

  This will handle all validation, type-checking, defaults, and extraction of
  values from an input dictionary.

  Subclasses must define class-level Field objects defining their fields.
  The base class does the rest.
  """

  def __init__(self, dictionary: Dict[str, Any]) -> None:
    """Ingests, type-checks, and validates the input dictionary."""

    config_fields = {}
    for key, field in self.__class__.__dict__.items():
      if isinstance(field, Field):
        config_fields[key] = field

    for key, value in dictionary.items():
      field = config_fields.get(key)

      if not field:
        raise UnrecognizedField(self.__class__, key, Field(None))

      value = self._check_type(field, key, value)
      setattr(self, key, value)

    for key, field in config_fields.items():
      if not key in dictionary:
        setattr(self, key, field.default)

  def _check_type(self, field: Field, key: str, value: Any) -> Any:
    """Check |value| against the field's ValidatingType.

    Note that automatic type coercion is avoided.  We wouldn't want a string
    containing "7500" silently accepted as a number.
    """

    assert field.type is not None, 'No type info for Field {}'.format(key)
    try:
      field.type.validate(value)
    except TypeError:
      raise WrongType(self.__class__, key, field) from None
    except ValueError as e:
      raise MalformedField(self.__class__, key, field, str(e)) from None
    return value
