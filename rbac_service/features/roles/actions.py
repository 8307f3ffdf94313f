"""
Conversion between typed action lists and their stored form.

Both backends persist a permission's actions as one comma-delimited string,
e.g. "db:read,db:write". No namespace tag is stored; decoding infers the
namespace from the first token.
"""
from enum import Enum
from typing import Optional, Sequence

from rbac_service.core.errors import ConversionError
from rbac_service.features.roles.models import ACTION_NAMESPACES, ActionList


ACTION_DELIMITER = ","

_NAMESPACE_VALUES = {
    namespace: frozenset(member.value for member in namespace) for namespace in ACTION_NAMESPACES
}


def action_namespace(token: str) -> Optional[type[Enum]]:
    """Return the action enum that owns ``token``, or None if none does."""
    for namespace, values in _NAMESPACE_VALUES.items():
        if token in values:
            return namespace
    return None


def encode_actions(actions: Sequence[Enum]) -> str:
    """
    Flatten an action list into its stored string, preserving order.

    Raises:
        ConversionError: if the list is empty or mixes namespaces
    """
    values = [action.value if isinstance(action, Enum) else str(action) for action in actions]
    if not values:
        raise ConversionError("", "empty action list")

    namespace = action_namespace(values[0])
    if namespace is None:
        raise ConversionError(ACTION_DELIMITER.join(values))
    for value in values[1:]:
        if value not in _NAMESPACE_VALUES[namespace]:
            raise ConversionError(
                ACTION_DELIMITER.join(values),
                f"mixes {namespace.__name__} with {value!r}",
            )
    return ACTION_DELIMITER.join(values)


def decode_actions(stored: str) -> ActionList:
    """
    Rebuild a typed action list from its stored string.

    The first token selects the namespace; the remaining tokens are cast into it.

    Raises:
        ConversionError: if the first token matches no namespace, or a later
            token does not belong to the namespace the first one selected
    """
    tokens = stored.split(ACTION_DELIMITER) if stored else []
    namespace = action_namespace(tokens[0]) if tokens else None
    if namespace is None:
        raise ConversionError(stored)

    try:
        return [namespace(token) for token in tokens]
    except ValueError:
        raise ConversionError(stored, f"not all actions belong to {namespace.__name__}") from None
