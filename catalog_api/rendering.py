"""Render response payloads in the negotiated representation."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from typing import Any

import yaml
from fastapi.encoders import jsonable_encoder
from fastapi.responses import ORJSONResponse, Response

from .negotiation import APPLICATION_JSON, APPLICATION_XML, APPLICATION_YAML

XML_ITEM_TAG = "item"
XML_ENTRY_TAG = "entry"

_XML_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_.-]*")
_XML_INVALID_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def _xml_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return _XML_INVALID_CHARS.sub("", str(value))


def _sub_element(parent: ET.Element, key: str) -> ET.Element:
    # keys that are not XML names are carried as an attribute of a generic element
    if _XML_NAME.fullmatch(key):
        return ET.SubElement(parent, key)
    return ET.SubElement(parent, XML_ENTRY_TAG, key=_XML_INVALID_CHARS.sub("", key))


def _append_xml(parent: ET.Element, key: str, value: Any) -> None:
    """Append ``value`` below ``parent`` as element(s) named after ``key``."""

    if isinstance(value, (list, tuple)):
        wrapper = _sub_element(parent, key)
        for item in value:
            _append_xml(wrapper, key, item)
        return
    element = _sub_element(parent, key)
    _fill_xml(element, value)


def _fill_xml(element: ET.Element, value: Any) -> None:
    if isinstance(value, Mapping):
        for key, child in value.items():
            _append_xml(element, str(key), child)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _append_xml(element, XML_ITEM_TAG, item)
    else:
        element.text = _xml_text(value)


def to_xml(payload: Any, *, root_tag: str) -> bytes:
    """Serialise a JSON-compatible payload into an XML document."""

    root = ET.Element(root_tag)
    _fill_xml(root, payload)
    ET.indent(root, space="  ")
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def to_yaml(payload: Any) -> bytes:
    return yaml.safe_dump(
        payload, sort_keys=False, allow_unicode=True, default_flow_style=False
    ).encode("utf-8")


def render(
    payload: Any,
    media_type: str,
    *,
    status_code: int = 200,
    root_tag: str = "Response",
    headers: Mapping[str, str] | None = None,
) -> Response:
    """Build a response for ``payload`` in ``media_type``.

    Unknown media types are rendered as JSON.
    """

    content = jsonable_encoder(payload)
    if media_type == APPLICATION_XML:
        response = Response(
            content=to_xml(content, root_tag=root_tag),
            status_code=status_code,
            media_type=APPLICATION_XML,
            headers=dict(headers or {}),
        )
        response.headers["content-type"] = "application/xml; charset=utf-8"
        return response
    if media_type == APPLICATION_YAML:
        response = Response(
            content=to_yaml(content),
            status_code=status_code,
            media_type=APPLICATION_YAML,
            headers=dict(headers or {}),
        )
        response.headers["content-type"] = "application/yaml; charset=utf-8"
        return response
    return ORJSONResponse(
        content=content,
        status_code=status_code,
        media_type=APPLICATION_JSON,
        headers=dict(headers or {}),
    )


__all__ = ["render", "to_xml", "to_yaml"]
