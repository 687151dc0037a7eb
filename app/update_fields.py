from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping, Set

from app.patch_field import PatchField


def provided_field_names(body: Any) -> Set[str]:
    """Names of the fields a parsed payload actually carried (pydantic `model_fields_set`)."""
    return set(body.model_fields_set)


def patch_fields(body: Any, field_names: Iterable[str]) -> Dict[str, PatchField[Any]]:
    """Collect one PatchField per update field of `body`.

    Fields already typed as PatchField are taken as-is. Plain Optional[...]
    fields are wrapped according to presence, so an explicit null becomes
    `PatchField.of(None)` and an omitted key stays not-provided.
    """
    provided = provided_field_names(body)
    out: Dict[str, PatchField[Any]] = {}

    for name in field_names:
        value = getattr(body, name)
        if isinstance(value, PatchField):
            out[name] = value
        elif name in provided:
            out[name] = PatchField.of(value)
        else:
            out[name] = PatchField.not_provided()
    return out


def attribute_setter(target: Any, name: str) -> Callable[[Any], None]:
    def _set(value: Any) -> None:
        setattr(target, name, value)

    return _set


def apply_patch_fields(target: Any, fields: Mapping[str, PatchField[Any]]) -> List[str]:
    """Write every provided field onto `target`; leave the rest untouched.

    Returns the names that were applied, in mapping order.
    """
    applied: List[str] = []

    for name, field in fields.items():
        field.if_provided(attribute_setter(target, name))
        if field.is_provided():
            applied.append(name)
    return applied
