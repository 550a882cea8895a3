"""Contratos de autenticación contra un sitio.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- El paginador solo necesita "un header Authorization para este sitio";
  si viene de un token estático o de una sesión cacheada es intercambiable
  y testeable sin acoplar el Core a implementaciones concretas.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SiteAuthenticator(Protocol):
    """Produce el valor del header `Authorization` para un sitio."""

    async def authorization(self, site_url: str) -> str:
        """Devuelve el header completo (p.ej. `token abc:def`)."""

        ...


@runtime_checkable
class SiteTokenFetcher(Protocol):
    """Intercambia credenciales de la autoridad por una sesión de sitio.

    Reglas de diseño:
    - Una llamada = una petición de red; el cacheo es cosa de quien llama.
    - Cualquier rechazo o respuesta inválida se reporta como `AuthFailure`.
    """

    async def fetch_site_token(self, site_url: str) -> str:
        """Devuelve el identificador de sesión emitido para `site_url`."""

        ...
