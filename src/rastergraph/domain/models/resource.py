from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime

from rastergraph.core.errors import ValidationError
from rastergraph.core.time import parse_iso

RASTER_FILE = "RasterFile"
RASTER = "Raster"


@dataclass(frozen=True, slots=True)
class FieldSpec:
    name: str
    multiple: bool
    index_type: str


_DESCRIPTIVE_FIELDS = (
    FieldSpec("title", multiple=True, index_type="text"),
    FieldSpec("georss_box", multiple=False, index_type="text"),
    FieldSpec("crs", multiple=False, index_type="text"),
    FieldSpec("depositor", multiple=False, index_type="symbol"),
    FieldSpec("date_uploaded", multiple=False, index_type="date"),
    FieldSpec("date_modified", multiple=False, index_type="date"),
)

MODEL_FIELDS: dict[str, tuple[FieldSpec, ...]] = {
    RASTER_FILE: _DESCRIPTIVE_FIELDS,
    RASTER: _DESCRIPTIVE_FIELDS,
}


def fields_for(model: str) -> tuple[FieldSpec, ...]:
    try:
        return MODEL_FIELDS[model]
    except KeyError:
        raise ValidationError(f"Unknown resource model: {model}") from None


def _coerce_value(spec: FieldSpec, value: object) -> str:
    if isinstance(value, (bytes, bytearray)):
        raise ValidationError(f"Field '{spec.name}' takes text, got {type(value).__name__}")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    text = str(value)
    if spec.index_type == "date":
        try:
            parse_iso(text)
        except ValueError:
            raise ValidationError(f"Field '{spec.name}' expects an ISO date, got {text!r}") from None
    return text


def _normalize_values(spec: FieldSpec, values: object) -> list[str]:
    if values is None:
        return []
    if isinstance(values, (str, bytes, bytearray)) or not isinstance(values, Iterable):
        items = [values]
    else:
        items = list(values)
    normalized = [_coerce_value(spec, v) for v in items if v is not None]
    if not spec.multiple and len(normalized) > 1:
        raise ValidationError(
            f"Field '{spec.name}' holds a single value, got {len(normalized)}"
        )
    return normalized


@dataclass(slots=True, eq=False)
class Resource:
    """A repository object with declared, typed attribute fields.

    Attributes are kept as ordered value lists keyed by field name. Only fields
    declared for the resource's model may be read or written.
    """

    id: str
    model: str
    attributes: dict[str, list[str]] = field(default_factory=dict)
    is_new: bool = True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Resource):
            return NotImplemented
        return self.id == other.id and self.model == other.model

    def __hash__(self) -> int:
        return hash((self.model, self.id))

    def field_spec(self, name: str) -> FieldSpec:
        for spec in fields_for(self.model):
            if spec.name == name:
                return spec
        raise ValidationError(f"Unknown field '{name}' for {self.model}")

    def set(self, name: str, values: object) -> None:
        spec = self.field_spec(name)
        normalized = _normalize_values(spec, values)
        if normalized:
            self.attributes[name] = normalized
        else:
            self.attributes.pop(name, None)

    def get(self, name: str) -> list[str] | str | None:
        spec = self.field_spec(name)
        stored = self.attributes.get(name, [])
        if spec.multiple:
            return list(stored)
        return stored[0] if stored else None

    def update_attributes(self, values: Mapping[str, object]) -> None:
        # Validate every name first so a bad key leaves the resource untouched.
        for name in values:
            self.field_spec(name)
        for name, value in values.items():
            self.set(name, value)

    def populated_fields(self) -> list[FieldSpec]:
        return [spec for spec in fields_for(self.model) if self.attributes.get(spec.name)]

    def apply_depositor_metadata(self, depositor: str) -> None:
        self.set("depositor", depositor)

    @property
    def title(self) -> list[str]:
        return self.get("title")  # type: ignore[return-value]

    @title.setter
    def title(self, values: object) -> None:
        self.set("title", values)

    @property
    def georss_box(self) -> str | None:
        return self.get("georss_box")  # type: ignore[return-value]

    @georss_box.setter
    def georss_box(self, value: object) -> None:
        self.set("georss_box", value)

    @property
    def crs(self) -> str | None:
        return self.get("crs")  # type: ignore[return-value]

    @crs.setter
    def crs(self, value: object) -> None:
        self.set("crs", value)

    @property
    def depositor(self) -> str | None:
        return self.get("depositor")  # type: ignore[return-value]

    @property
    def date_uploaded(self) -> str | None:
        return self.get("date_uploaded")  # type: ignore[return-value]

    @date_uploaded.setter
    def date_uploaded(self, value: object) -> None:
        self.set("date_uploaded", value)

    @property
    def date_modified(self) -> str | None:
        return self.get("date_modified")  # type: ignore[return-value]

    @date_modified.setter
    def date_modified(self, value: object) -> None:
        self.set("date_modified", value)
