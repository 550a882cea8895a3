"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Decodifica las filas de `/api/resource/<DocType>` con validación estricta
  de los campos requeridos (un campo ausente es un error, no un default).
- `frozen=True` hace los modelos inmutables y hasheables: las filas se
  acumulan en sets y se deduplican por identidad.

Nota:
- Los modelos `*Raw` describen filas tal como las devuelve el sitio. `DocType`
  y `DocField` son el resultado ensamblado que recibe quien llama.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


def serial_names(model: type[BaseModel]) -> list[str]:
    """Nombres de campo tal como viajan en el JSON (alias si existe)."""

    return [field.alias or name for name, field in model.model_fields.items()]


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class DocTypeInfo(_Record):
    """Información adicional aportada por quien llama, enlazada por `name`."""

    name: str = Field(..., min_length=1, description="Nombre del DocType al que aplica.")
    description: str | None = Field(
        default=None,
        description="Descripción libre para mostrar junto al DocType.",
    )
    tags: tuple[str, ...] = Field(
        default=(),
        description="Etiquetas arbitrarias (p.ej. 'core', 'deprecated').",
    )


class DocField(_Record):
    """Campo ensamblado de un DocType (estándar o Custom Field)."""

    name: str
    fieldname: str | None = None
    fieldtype: str
    label: str | None = None
    options: str | None = None
    required: bool = False
    idx: int = 0
    is_custom: bool = False


class DocType(_Record):
    """Agregado principal: un DocType con todos sus campos.

    Solo lo construye el paso de merge (`DocTypeRaw.to_doc_type`).
    """

    name: str
    module: str
    is_custom: bool = False
    is_table: bool = False
    is_single: bool = False
    is_submittable: bool = False
    description: str | None = None
    fields: tuple[DocField, ...] = ()
    info: DocTypeInfo | None = None


class DocTypeRaw(_Record):
    name: str = Field(..., min_length=1)
    module: str
    custom: bool = False
    istable: bool = False
    issingle: bool = False
    is_submittable: bool = False
    description: str | None = None

    def to_doc_type(
        self,
        *,
        fields: Iterable[DocFieldRaw | DocCustomFieldRaw],
        info: DocTypeInfo | None,
    ) -> DocType:
        assembled = sorted((f.to_field() for f in fields), key=lambda f: (f.idx, f.name))
        return DocType(
            name=self.name,
            module=self.module,
            is_custom=self.custom,
            is_table=self.istable,
            is_single=self.issingle,
            is_submittable=self.is_submittable,
            description=self.description,
            fields=tuple(assembled),
            info=info,
        )


class DocFieldRaw(_Record):
    name: str = Field(..., min_length=1)
    parent: str = Field(..., min_length=1)
    fieldname: str | None = None
    fieldtype: str
    label: str | None = None
    options: str | None = None
    reqd: bool = False
    idx: int = 0

    def to_field(self) -> DocField:
        return DocField(
            name=self.name,
            fieldname=self.fieldname,
            fieldtype=self.fieldtype,
            label=self.label,
            options=self.options,
            required=self.reqd,
            idx=self.idx,
            is_custom=False,
        )


class DocCustomFieldRaw(_Record):
    """Fila de `Custom Field`: el DocType dueño viaja en `dt`, no en `parent`."""

    name: str = Field(..., min_length=1)
    parent: str = Field(..., min_length=1, alias="dt")
    fieldname: str | None = None
    fieldtype: str
    label: str | None = None
    options: str | None = None
    reqd: bool = False
    idx: int = 0
    insert_after: str | None = None

    def to_field(self) -> DocField:
        return DocField(
            name=self.name,
            fieldname=self.fieldname,
            fieldtype=self.fieldtype,
            label=self.label,
            options=self.options,
            required=self.reqd,
            idx=self.idx,
            is_custom=True,
        )


class SiteToken(_Record):
    """Sesión cacheada para un sitio."""

    token: str = Field(..., min_length=1)
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now
