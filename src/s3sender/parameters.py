"""Invocation parameter resolution."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from s3sender.exceptions import ParameterError
from s3sender.models import MessageContext, Parameter


def resolve_parameter(parameter: Parameter, context: MessageContext) -> Any:
    """Resolve a single parameter against the message context.

    Args:
        parameter: Parameter declaration
        context: Message context of the invocation

    Returns:
        Resolved value, possibly None

    Raises:
        ParameterError: If a required parameter resolves to nothing
    """
    if parameter.value is not None:
        value = parameter.value
    elif parameter.session_key is not None:
        value = context.session.get(parameter.session_key, parameter.default)
    elif parameter.default is not None:
        value = parameter.default
    else:
        value = context.message

    if value is None and parameter.required:
        raise ParameterError(
            f"Required parameter '{parameter.name}' has no value "
            f"(session_key={parameter.session_key})",
            parameter=parameter.name,
        )

    return value


def resolve_parameters(
    parameters: Iterable[Parameter],
    context: MessageContext,
) -> dict[str, Any]:
    """Resolve all declared parameters.

    Args:
        parameters: Parameter declarations
        context: Message context of the invocation

    Returns:
        Mapping of parameter name to resolved value
    """
    return {
        parameter.name: resolve_parameter(parameter, context)
        for parameter in parameters
    }
