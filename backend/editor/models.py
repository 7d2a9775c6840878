"""Immutable editor data: pages, fields, recipients and the store snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from editor.ids import FieldId, as_field_id


class FieldType(str, Enum):
    TEXT = 'text'
    SIGNATURE = 'signature'
    INITIALS = 'initials'
    DATE = 'date'
    CHECKBOX = 'checkbox'
    DROPDOWN = 'dropdown'
    RADIO = 'radio'
    STAMP = 'stamp'


@dataclass(frozen=True, slots=True)
class Field:
    id: FieldId
    type: FieldType
    x: float
    y: float
    width: float
    height: float
    page_id: str
    value: str | None = None
    required: bool = False
    recipient_id: str | None = None
    label: str | None = None
    placeholder: str | None = None
    default_value: str | None = None
    options: tuple[str, ...] | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            'id': str(self.id),
            'type': FieldType(self.type).value,
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'required': self.required,
            'value': self.value,
            'label': self.label,
            'recipientId': self.recipient_id,
            'placeholder': self.placeholder,
            'defaultValue': self.default_value,
            'options': list(self.options) if self.options is not None else None,
        }


@dataclass(frozen=True, slots=True)
class Page:
    id: str
    page_number: int
    width: float
    height: float
    fields: tuple[Field, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        return {
            'pageNumber': self.page_number,
            'width': self.width,
            'height': self.height,
            'fields': [f.to_payload() for f in self.fields],
        }


@dataclass(frozen=True, slots=True)
class Recipient:
    id: str
    name: str
    email: str
    role: str
    color: str
    delivery_method: str = 'email'
    submitted_at: str | None = None


@dataclass(frozen=True, slots=True)
class EditorState:
    pages: tuple[Page, ...] = ()
    recipients: tuple[Recipient, ...] = ()
    active_page: int = 1
    is_saving: bool = False
    selected_field_id: FieldId | None = None


def pages_to_payload(pages: tuple[Page, ...]) -> list[dict[str, Any]]:
    return [page.to_payload() for page in pages]


def field_from_payload(data: dict[str, Any], page_id: str) -> Field:
    options = data.get('options')
    return Field(
        id=as_field_id(str(data['id'])),
        type=FieldType(data['type']),
        x=float(data['x']),
        y=float(data['y']),
        width=float(data['width']),
        height=float(data['height']),
        page_id=str(data.get('pageId') or page_id),
        value=data.get('value'),
        required=bool(data.get('required', False)),
        recipient_id=data.get('recipientId'),
        label=data.get('label'),
        placeholder=data.get('placeholder'),
        default_value=data.get('defaultValue'),
        options=tuple(options) if options is not None else None,
    )


def page_from_payload(data: dict[str, Any]) -> Page:
    page_id = str(data['id'])
    return Page(
        id=page_id,
        page_number=int(data['pageNumber']),
        width=float(data['width']),
        height=float(data['height']),
        fields=tuple(field_from_payload(f, page_id) for f in data.get('fields', [])),
    )


def recipient_from_payload(data: dict[str, Any]) -> Recipient:
    return Recipient(
        id=str(data['id']),
        name=data['name'],
        email=data['email'],
        role=data['role'],
        color=data['color'],
        delivery_method=data.get('deliveryMethod', 'email'),
        submitted_at=data.get('submittedAt'),
    )
