"""Tagged outcome of an upload: ``Ok(confirmation)`` or ``Err(error)``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from .errors import UploadError
from .types import UploadConfirmation

_T = TypeVar("_T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[_T]):
    value: _T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> _T:
        return self.value


@dataclass(frozen=True, slots=True)
class Err:
    error: UploadError

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self) -> UploadConfirmation:
        raise self.error


UploadResult = Union[Ok[UploadConfirmation], Err]


__all__ = ["Ok", "Err", "UploadResult"]
