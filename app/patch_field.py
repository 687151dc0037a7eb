from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar, get_args

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

T = TypeVar("T")
U = TypeVar("U")


class AbsentValueError(LookupError):
    """Raised when reading the value of a field that was not provided."""


class InvalidArgumentError(ValueError):
    """Raised when a required callable (or failure) argument is missing."""


def _require_callable(fn: Any, name: str) -> None:
    if fn is None or not callable(fn):
        raise InvalidArgumentError(f"{name} must be a callable, got {fn!r}")


def _is_exception(failure: Any) -> bool:
    if isinstance(failure, BaseException):
        return True
    return isinstance(failure, type) and issubclass(failure, BaseException)


class PatchField(Generic[T]):
    """A value plus a flag recording whether it appeared in a PATCH payload.

    `Optional[...]` cannot tell an omitted key from an explicit JSON null.
    A PatchField can:

      - PatchField.not_provided(): key absent, leave the target untouched
      - PatchField.of(None):       key present with null, clear the target
      - PatchField.of(value):      key present, set the target

    Instances are immutable. Equality is structural; do not rely on identity.

    Usage in a request model::

        class ExampleUpdate(BaseModel):
            name: PatchField[Optional[str]] = PatchField.not_provided()

        body.name.if_provided(attribute_setter(entity, "name"))
    """

    __slots__ = ("_value", "_provided")

    def __init__(self, value: Any, provided: bool) -> None:
        object.__setattr__(self, "_value", value if provided else None)
        object.__setattr__(self, "_provided", bool(provided))

    @classmethod
    def of(cls, value: T) -> PatchField[T]:
        return cls(value, True)

    @staticmethod
    def not_provided() -> PatchField[Any]:
        return _NOT_PROVIDED

    def is_provided(self) -> bool:
        return self._provided

    def get(self) -> T:
        if not self._provided:
            raise AbsentValueError("No value provided")
        return self._value

    def if_provided(self, action: Callable[[T], Any]) -> None:
        _require_callable(action, "action")
        if self._provided:
            action(self._value)

    def map(self, mapper: Callable[[T], U]) -> PatchField[U]:
        """Return `of(mapper(value))` if provided, else `not_provided()`.

        The mapper is never called for an absent field; it may assume a value.
        """
        _require_callable(mapper, "mapper")
        if not self._provided:
            return PatchField.not_provided()
        return PatchField.of(mapper(self._value))

    def if_provided_validate(self, predicate: Callable[[T], Any], failure: Any) -> PatchField[T]:
        """Raise `failure` if provided and `predicate(value)` is falsy.

        Absent fields always pass. Returns self so checks can be chained.
        `failure` is raised as-is (an exception instance or class).
        """
        _require_callable(predicate, "predicate")
        if not _is_exception(failure):
            raise InvalidArgumentError(f"failure must be an exception instance or class, got {failure!r}")
        if self._provided and not predicate(self._value):
            raise failure
        return self

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __copy__(self) -> PatchField[T]:
        return self

    def __deepcopy__(self, memo: dict) -> PatchField[T]:
        return self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PatchField):
            return NotImplemented
        if self._provided != other._provided:
            return False
        return not self._provided or self._value == other._value

    def __hash__(self) -> int:
        if not self._provided:
            return hash((PatchField, False))
        return hash((PatchField, True, self._value))

    def __repr__(self) -> str:
        if not self._provided:
            return "NotProvided"
        return f"Provided({self._value!r})"

    # Pydantic hook: only called for keys present in the payload, null included.
    # Absent keys never reach the validator and keep the field default.
    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        args = get_args(source_type)
        inner = handler.generate_schema(args[0]) if args else core_schema.any_schema()
        from_value = core_schema.no_info_after_validator_function(cls.of, inner)

        return core_schema.json_or_python_schema(
            json_schema=from_value,
            python_schema=core_schema.union_schema(
                [core_schema.is_instance_schema(cls), from_value]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(_serialize),
        )


def _serialize(field: Any) -> Any:
    if isinstance(field, PatchField):
        return field.get() if field.is_provided() else None
    return field


_NOT_PROVIDED: PatchField[Any] = PatchField(None, False)
