"""Políticas de merge para la información adicional de DocTypes.

Vive en el dominio para que CLI, config y servicios compartan una única
fuente de verdad sin imports circulares con los adaptadores.
"""

from __future__ import annotations

from enum import Enum


class DuplicatePolicy(str, Enum):
    """Qué hacer cuando dos `DocTypeInfo` comparten `name`."""

    LAST = "last"
    FIRST = "first"
    ERROR = "error"

    @classmethod
    def default(cls) -> "DuplicatePolicy":
        """Return the policy used when the caller does not pick one."""

        return cls.LAST

    def label(self) -> str:
        """Human readable label for diagnostics and logging."""

        if self is DuplicatePolicy.FIRST:
            return "first wins"
        if self is DuplicatePolicy.ERROR:
            return "reject duplicates"
        return "last wins"
