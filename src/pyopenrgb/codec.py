"""Wire primitives for the OpenRGB SDK protocol using construct.

All integers on the wire are little-endian. Strings carry a u16 byte length
that includes a trailing null terminator, and sequences carry an element count
followed by that many encoded elements.

Fields introduced by later protocol revisions are appended to the end of their
record and only exist on the wire when the negotiated protocol version is high
enough. :class:`VersionGated` wraps such a field: the version is passed to
``parse``/``build`` as the ``protocol_version`` context parameter.
"""

from __future__ import annotations

import io
from typing import Any, Final, cast

from construct import (
    Adapter,
    Construct,
    ConstructError,
    GreedyBytes,
    Int16ul,
    Prefixed,
    PrefixedArray,
    Subconstruct,
    ValidationError,
)

from pyopenrgb.errors import MalformedMessageError


class UnsupportedVersion:
    """Value of a version-gated field absent at the negotiated protocol version.

    There is exactly one instance, :data:`UNSUPPORTED`. It is falsy, but never
    equal to ``None`` or to an empty value, so "not on the wire" stays
    distinguishable from "present but empty".
    """

    _instance: UnsupportedVersion | None = None

    def __new__(cls) -> UnsupportedVersion:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSUPPORTED"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> UnsupportedVersion:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> UnsupportedVersion:
        return self


UNSUPPORTED: Final = UnsupportedVersion()


def protocol_version(context: Any) -> int:
    """Read the negotiated protocol version from a construct context.

    Args:
        context: construct Container passed to a parse/build callback

    Returns:
        The ``protocol_version`` parameter given to ``parse``/``build``

    Raises:
        ValidationError: If no protocol version was supplied
    """
    try:
        return int(context._params.protocol_version)
    except (AttributeError, KeyError) as err:
        raise ValidationError("protocol_version parameter is required") from err


class VersionGated(Subconstruct):  # type: ignore[misc]
    """A field that only exists from ``min_version`` onwards.

    Below the minimum version the field consumes and produces zero bytes and
    parses to :data:`UNSUPPORTED`. At or above it, it behaves exactly like the
    wrapped construct.
    """

    def __init__(self, min_version: int, subcon: Construct) -> None:
        super().__init__(subcon)
        self.min_version = min_version

    def is_present(self, context: Any) -> bool:
        return protocol_version(context) >= self.min_version

    def _parse(self, stream: Any, context: Any, path: str) -> Any:
        if not self.is_present(context):
            return UNSUPPORTED
        return self.subcon._parsereport(stream, context, path)

    def _build(self, obj: Any, stream: Any, context: Any, path: str) -> Any:
        if not self.is_present(context):
            return UNSUPPORTED
        if obj is UNSUPPORTED:
            raise ValidationError(
                f"field requires a value at protocol version {protocol_version(context)}",
                path=path,
            )
        return self.subcon._build(obj, stream, context, path)

    def _sizeof(self, context: Any, path: str) -> int:
        if not self.is_present(context):
            return 0
        return cast(int, self.subcon._sizeof(context, path))


class _NullTerminatedAdapter(Adapter):  # type: ignore[misc]
    """Strip/append the null terminator counted in the string length prefix."""

    def _decode(self, obj: bytes, context: Any, path: str) -> str:
        if not obj:
            return ""
        if obj[-1] != 0:
            raise ValidationError("string is not null terminated", path=path)
        # Device names come from vendor firmware and are not always valid UTF-8
        return obj[:-1].decode("utf-8", errors="replace")

    def _encode(self, obj: str, context: Any, path: str) -> bytes:
        return obj.encode("utf-8") + b"\x00"


# u16 byte length (terminator included) followed by UTF-8 text and a null byte
OrgbString: Construct = _NullTerminatedAdapter(Prefixed(Int16ul, GreedyBytes))


def counted(subcon: Construct, count: Construct = Int16ul) -> Construct:
    """Sequence of ``subcon`` elements prefixed by their count.

    Args:
        subcon: Element construct
        count: Integer construct for the prefix (u16 unless a field says otherwise)

    Returns:
        A construct parsing to a list of elements
    """
    return PrefixedArray(count, subcon)


def parse_versioned(
    construct: Construct, data: bytes, version: int, **params: Any
) -> Any:
    """Parse a complete message body at the given protocol version.

    Args:
        construct: Construct describing the whole body
        data: Raw body bytes
        version: Negotiated protocol version
        **params: Extra context parameters

    Returns:
        The parsed value

    Raises:
        MalformedMessageError: If the data is truncated, inconsistent with its
            own size/count prefixes, or followed by unexpected trailing bytes
    """
    stream = io.BytesIO(data)
    try:
        value = construct.parse_stream(stream, protocol_version=version, **params)
    except ConstructError as err:
        raise MalformedMessageError(str(err)) from err
    remaining = len(data) - stream.tell()
    if remaining:
        raise MalformedMessageError(f"{remaining} unexpected trailing bytes")
    return value


def build_versioned(construct: Construct, obj: Any, version: int, **params: Any) -> bytes:
    """Encode a value at the given protocol version.

    Args:
        construct: Construct describing the value
        obj: Value to encode
        version: Negotiated protocol version
        **params: Extra context parameters

    Returns:
        Encoded bytes
    """
    return cast(bytes, construct.build(obj, protocol_version=version, **params))
