"""Errores tipados del cliente.

Por qué una jerarquía propia:
- La CLI (y cualquier otro entry-point) captura una sola base
  (`FrappeClientError`) sin conocer httpx ni pydantic.
- Cada capa traduce sus fallos en el borde: HTTP -> `TransportFailure`,
  forma del JSON -> `DecodeFailure`, autoridad de tokens -> `AuthFailure`.
"""

from __future__ import annotations


class FrappeClientError(Exception):
    """Base de todos los fallos del cliente."""


class TransportFailure(FrappeClientError):
    """La petición no se completó o devolvió un status no exitoso."""

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class DecodeFailure(FrappeClientError):
    """El JSON recibido no tiene la forma o los campos requeridos."""


class AuthFailure(FrappeClientError):
    """La autoridad rechazó el intercambio de token o respondió algo inválido."""

    def __init__(self, message: str, *, site_url: str | None = None) -> None:
        super().__init__(message)
        self.site_url = site_url


class DuplicateInfoError(FrappeClientError, ValueError):
    """Dos `DocTypeInfo` con el mismo `name` bajo `DuplicatePolicy.ERROR`."""
