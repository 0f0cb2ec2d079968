"""Translation between domain values and transport parameter/response mappings.

Parameter names are the repository's camelCase names. Absent optional
parameters are omitted rather than sent as nulls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence, TypeVar

from pydantic import ValidationError

from packages.cmis_shared.logging import get_logger
from services.state.object_service.domain import (
    Ace,
    Acl,
    AclDelta,
    Action,
    AllowableActions,
    BaseTypeId,
    ContentStream,
    Extension,
    ObjectData,
    ObjectIdAndChangeToken,
    Properties,
    PropertyIds,
    Rendition,
)

_LOGGER = get_logger(__name__)

T = TypeVar("T")


class MalformedResponseError(ValueError):
    """A transport response did not have the expected shape."""


@dataclass(frozen=True)
class DescendantNode:
    """One node of a folder's descendant tree."""

    object_id: str
    base_type_id: str
    parent_count: int
    children: tuple[DescendantNode, ...]

    @property
    def is_folder(self) -> bool:
        return self.base_type_id == BaseTypeId.FOLDER


def parameters(**values: Any) -> dict[str, Any]:
    """Build a parameter mapping, omitting absent (``None``) values."""
    return {key: value for key, value in values.items() if value is not None}


def encode_properties(properties: Properties) -> dict[str, Any]:
    return {
        key: list(value) if isinstance(value, tuple) else value
        for key, value in properties.values.items()
    }


def encode_content_stream(stream: ContentStream | None) -> dict[str, Any] | None:
    if stream is None:
        return None
    return parameters(
        content=stream.content,
        mimeType=stream.mime_type,
        filename=stream.filename,
        length=stream.length,
    )


def encode_aces(aces: Sequence[Ace]) -> list[dict[str, Any]] | None:
    """Encode one side of an ACL delta; an empty side is omitted."""
    if len(aces) == 0:
        return None
    return [
        {
            "principalId": ace.principal_id,
            "permissions": sorted(ace.permissions),
            "direct": ace.direct,
        }
        for ace in aces
    ]


def encode_acl_delta(delta: AclDelta) -> dict[str, Any]:
    return parameters(
        addAces=encode_aces(delta.to_add),
        removeAces=encode_aces(delta.to_remove),
    )


def encode_extension(extension: Extension | None) -> Any:
    return None if extension is None else extension.payload


def encode_id_list(ids: Sequence[str]) -> list[str] | None:
    return list(ids) if ids else None


def decode_created_id(raw: Mapping[str, Any]) -> str:
    """Return the object id assigned by a create operation."""
    return _required_str(raw, "objectId")


def decode_id_and_token(
    raw: Mapping[str, Any], *, fallback: ObjectIdAndChangeToken
) -> ObjectIdAndChangeToken:
    """Decode the successor pair, falling back to the supplied values."""
    object_id = _optional_str(raw, "objectId")
    change_token = _optional_str(raw, "changeToken")
    return ObjectIdAndChangeToken(
        object_id=object_id if object_id is not None else fallback.object_id,
        change_token=(
            change_token if change_token is not None else fallback.change_token
        ),
    )


def decode_properties(raw: Any) -> Properties:
    if raw is None:
        return Properties()
    if not isinstance(raw, Mapping):
        raise MalformedResponseError("properties must be an object")
    return _build(Properties, values=dict(raw))


def decode_properties_response(raw: Mapping[str, Any]) -> Properties:
    return decode_properties(raw.get("properties"))


def decode_object(raw: Any) -> ObjectData:
    """Decode one object snapshot."""
    if not isinstance(raw, Mapping):
        raise MalformedResponseError("object must be an object")
    properties = decode_properties(raw.get("properties"))
    object_id = _optional_str(raw, "objectId") or _string_or_none(
        properties.get(PropertyIds.OBJECT_ID)
    )
    if object_id is None:
        raise MalformedResponseError("object response is missing objectId")
    base_type = _optional_str(raw, "baseTypeId") or _string_or_none(
        properties.get(PropertyIds.BASE_TYPE_ID)
    )
    change_token = _optional_str(raw, "changeToken") or _string_or_none(
        properties.get(PropertyIds.CHANGE_TOKEN)
    )
    allowable = raw.get("allowableActions")
    acl = raw.get("acl")
    policy_ids = raw.get("policyIds")
    extension = raw.get("extension")
    return _build(
        ObjectData,
        object_id=object_id,
        base_type_id=_decode_base_type(base_type),
        properties=properties,
        change_token=change_token,
        allowable_actions=(
            None if allowable is None else decode_allowable_actions(allowable)
        ),
        policy_ids=(
            None if policy_ids is None else tuple(_str_list(policy_ids, "policyIds"))
        ),
        acl=None if acl is None else decode_acl(acl),
        renditions=tuple(
            decode_rendition(item)
            for item in _list(raw.get("renditions"), "renditions")
        ),
        relationships=tuple(
            decode_object(item)
            for item in _list(raw.get("relationships"), "relationships")
        ),
        extension=None if extension is None else Extension(payload=extension),
    )


def decode_allowable_actions(raw: Any) -> AllowableActions:
    """Decode allowable actions from a flag map or a list of action names.

    Action names the client does not know are ignored.
    """
    if isinstance(raw, Mapping) and "allowableActions" in raw:
        raw = raw["allowableActions"]
    if isinstance(raw, Mapping):
        names = [str(name) for name, allowed in raw.items() if allowed is True]
    elif isinstance(raw, list):
        names = [str(name) for name in raw]
    else:
        raise MalformedResponseError("allowableActions must be an object or list")
    known = {item.value for item in Action}
    unknown = sorted(name for name in names if name not in known)
    if unknown:
        _LOGGER.debug("ignoring unknown allowable actions: %s", ", ".join(unknown))
    return AllowableActions(
        actions=frozenset(Action(name) for name in names if name in known)
    )


def decode_acl(raw: Any) -> Acl:
    if not isinstance(raw, Mapping):
        raise MalformedResponseError("acl must be an object")
    aces = []
    for item in _list(raw.get("aces"), "aces"):
        if not isinstance(item, Mapping):
            raise MalformedResponseError("ace must be an object")
        aces.append(
            _build(
                Ace,
                principal_id=item.get("principalId", ""),
                permissions=frozenset(
                    _str_list(item.get("permissions"), "permissions")
                ),
                direct=bool(item.get("direct", True)),
            )
        )
    is_exact = raw.get("isExact")
    return _build(
        Acl,
        aces=tuple(aces),
        is_exact=None if is_exact is None else bool(is_exact),
    )


def decode_content_stream(raw: Mapping[str, Any]) -> ContentStream:
    """Decode a content stream; the byte count is authoritative for partial reads."""
    stream = raw.get("contentStream", raw)
    if not isinstance(stream, Mapping):
        raise MalformedResponseError("contentStream must be an object")
    content = stream.get("content")
    if not isinstance(content, (bytes, bytearray)):
        raise MalformedResponseError("contentStream.content must be binary")
    return _build(
        ContentStream,
        content=bytes(content),
        mime_type=stream.get("mimeType") or "application/octet-stream",
        filename=stream.get("filename"),
    )


def decode_rendition(raw: Any) -> Rendition:
    if not isinstance(raw, Mapping):
        raise MalformedResponseError("rendition must be an object")
    return _build(
        Rendition,
        stream_id=raw.get("streamId"),
        kind=raw.get("kind"),
        mime_type=raw.get("mimeType"),
        length=raw.get("length"),
        title=raw.get("title"),
        height=raw.get("height"),
        width=raw.get("width"),
        rendition_document_id=raw.get("renditionDocumentId"),
    )


def decode_renditions(raw: Mapping[str, Any]) -> list[Rendition]:
    return [
        decode_rendition(item) for item in _list(raw.get("renditions"), "renditions")
    ]


def decode_descendants(raw: Mapping[str, Any]) -> tuple[DescendantNode, ...]:
    """Decode the nested descendant tree returned for a folder."""
    return tuple(_decode_node(item) for item in _list(raw.get("objects"), "objects"))


def _decode_node(raw: Any) -> DescendantNode:
    if not isinstance(raw, Mapping):
        raise MalformedResponseError("descendant must be an object")
    parent_count = raw.get("parentCount", 1)
    if not isinstance(parent_count, int) or parent_count < 1:
        raise MalformedResponseError("parentCount must be a positive integer")
    return DescendantNode(
        object_id=_required_str(raw, "objectId"),
        base_type_id=_required_str(raw, "baseTypeId"),
        parent_count=parent_count,
        children=tuple(
            _decode_node(item) for item in _list(raw.get("children"), "children")
        ),
    )


def _decode_base_type(value: str | None) -> BaseTypeId | None:
    if value is None:
        return None
    try:
        return BaseTypeId(value)
    except ValueError:
        raise MalformedResponseError(f"unknown base type: {value}") from None


def _build(factory: Callable[..., T], **fields: Any) -> T:
    """Construct one domain value, reporting shape errors as malformed input."""
    try:
        return factory(**fields)
    except ValidationError as exc:
        raise MalformedResponseError(str(exc)) from None


def _required_str(raw: Mapping[str, Any], key: str) -> str:
    value = _optional_str(raw, key)
    if value is None:
        raise MalformedResponseError(f"response is missing {key}")
    return value


def _optional_str(raw: Mapping[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or value.strip() == "":
        raise MalformedResponseError(f"{key} must be a non-empty string")
    return value


def _string_or_none(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return None if value is None else str(value)


def _list(raw: Any, name: str) -> list[Any]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise MalformedResponseError(f"{name} must be a list")
    return raw


def _str_list(raw: Any, name: str) -> list[str]:
    return [str(item) for item in _list(raw, name)]
