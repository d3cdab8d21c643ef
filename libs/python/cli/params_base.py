"""
Base decorator factory for CLI parameter injection.

Provider modules use `_create_param_decorator` to add a group of options to
a Typer callback without spelling them out in every callback signature.
The collected values are stored under one key of `ctx.obj`.
"""

import inspect
from functools import wraps
from typing import Any, Callable


def _create_param_decorator(
    param_specs: list[tuple[str, inspect.Parameter]],
    context_key: str,
    param_extractor: Callable[[dict[str, Any]], Any],
) -> Callable:
    """
    Factory for creating parameter injection decorators.

    Args:
        param_specs: (param_name, Parameter) pairs appended to the signature
        context_key: Key the extracted value is stored under in ctx.obj
        param_extractor: Pops the injected params out of kwargs and returns
            the value to store

    Returns:
        Decorator that injects the parameters
    """
    def decorator(func: Callable) -> Callable:
        sig = inspect.signature(func)
        params = list(sig.parameters.values())
        params.extend(param for _, param in param_specs)
        new_sig = sig.replace(parameters=params)

        @wraps(func)
        def wrapper(*args, **kwargs):
            # Typer passes ctx positionally or by name depending on the callback
            ctx = args[0] if args else kwargs.get("ctx")
            extracted = param_extractor(kwargs)
            if ctx is not None:
                ctx.ensure_object(dict)
                ctx.obj[context_key] = extracted
            return func(*args, **kwargs)

        # Typer inspects __signature__ to build the option list
        wrapper.__signature__ = new_sig
        return wrapper

    return decorator
