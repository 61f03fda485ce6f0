"""Discriminated operation results returned by domain services."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Generic, ParamSpec, TypeVar, Union

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.shared.exceptions import (
    EXCEPTIONS_BY_CODE,
    AppException,
    StorageException,
    ValidationFailedException,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)
P = ParamSpec("P")


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    """Operation completed; carries its payload."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Failure:
    """Expected failure with a stable code and a user-facing message."""

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return False


OperationResult = Union[Success[T], Failure]


def service_operation(
    failure_message: str,
) -> Callable[[Callable[P, Awaitable[OperationResult[T]]]], Callable[P, Awaitable[OperationResult[T]]]]:
    """Convert domain exceptions and storage errors into failure results.

    Domain exceptions keep their code and message. Storage errors are logged
    with the operation arguments and reported with ``failure_message``.
    """

    def decorator(
        func: Callable[P, Awaitable[OperationResult[T]]],
    ) -> Callable[P, Awaitable[OperationResult[T]]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> OperationResult[T]:
            try:
                return await func(*args, **kwargs)
            except AppException as exc:
                return Failure(code=exc.code, message=exc.message, details=exc.details)
            except SQLAlchemyError:
                logger.exception(
                    "%s failed: args=%s kwargs=%s",
                    func.__qualname__,
                    args[1:],
                    kwargs,
                )
                return Failure(code=StorageException.code, message=failure_message)

        return wrapper

    return decorator


def unwrap(result: OperationResult[T]) -> T:
    """Return the success payload or raise the matching application exception."""
    if isinstance(result, Failure):
        exc_type = EXCEPTIONS_BY_CODE.get(result.code, AppException)
        raise exc_type(result.message, result.details)
    return result.value


def _first_error_message(exc: ValidationError) -> tuple[str, str]:
    error = exc.errors()[0]
    field_path = ".".join(str(part) for part in error["loc"])
    if error["type"] == "value_error":
        return str(error["ctx"]["error"]), field_path
    return error["msg"], field_path


def validate_payload(model: type[M], data: M | dict[str, Any]) -> M:
    """Validate raw input against a schema, failing on the first offending field."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        message, field_path = _first_error_message(exc)
        raise ValidationFailedException(message, {"field": field_path}) from exc
