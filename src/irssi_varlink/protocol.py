"""Varlink wire protocol: NUL-terminated JSON frames, calls and replies."""

import json
import string
from dataclasses import dataclass, field
from typing import Any

# Every frame on the wire ends with exactly one of these.
TERMINATOR = b"\0"

# Upper bound for a single pending (unterminated) inbound frame.
DEFAULT_MAX_MESSAGE_SIZE = 10 * 1024 * 1024

_IDENTIFIER_CHARS = frozenset(string.ascii_letters + string.digits + "_")


class ErrorName:
    INVALID_PARAMETER = "org.varlink.service.InvalidParameter"
    METHOD_NOT_FOUND = "org.varlink.service.MethodNotFound"
    INTERFACE_NOT_FOUND = "org.varlink.service.InterfaceNotFound"
    SERVICE_SHUTDOWN = "org.varlink.service.ServiceShutdown"
    INTERNAL_ERROR = "org.varlink.service.InternalError"
    SERVER_NOT_FOUND = "org.irssi.varlink.ServerNotFound"


class VarlinkError(Exception):
    """A named varlink error, turned into an error reply by the dispatcher."""

    def __init__(
        self, error: str, description: str | None = None, **extra: Any
    ) -> None:
        super().__init__(description or error)
        self.error = error
        self.description = description
        self.extra = extra


class FrameTooLarge(ValueError):
    """Pending inbound data exceeded the configured frame size limit."""


def split_frames(buffer: bytes) -> tuple[list[bytes], bytes]:
    """Split a byte buffer into complete frames and the trailing remainder.

    Returns:
        (frames, remainder) where frames have their terminator stripped and
        remainder is the unterminated tail to keep for the next read.
    """
    *frames, remainder = buffer.split(TERMINATOR)
    return frames, remainder


class FrameBuffer:
    """Accumulates inbound bytes for one connection and yields whole frames."""

    def __init__(self, max_size: int = DEFAULT_MAX_MESSAGE_SIZE):
        self._data = bytearray()
        self._max_size = max_size

    def feed(self, data: bytes) -> list[bytes]:
        """Append freshly read bytes and return every frame now complete.

        Raises:
            FrameTooLarge: If the unterminated remainder outgrows the limit.
        """
        self._data.extend(data)
        if TERMINATOR not in data:
            self._check_size()
            return []

        frames, remainder = split_frames(bytes(self._data))
        self._data = bytearray(remainder)
        self._check_size()
        return frames

    def _check_size(self) -> None:
        if len(self._data) > self._max_size:
            size = len(self._data)
            self._data.clear()
            raise FrameTooLarge(f"Message too large: {size}")

    def clear(self) -> None:
        self._data.clear()

    @property
    def pending(self) -> bytes:
        """Bytes received but not yet terminated."""
        return bytes(self._data)

    def __len__(self) -> int:
        return len(self._data)


def encode_frame(value: Any) -> bytes:
    """Serialize a JSON value followed by the frame terminator.

    Text is written as raw UTF-8. Strings that cannot be encoded as UTF-8
    (lone surrogates from ``\\u`` escapes) fall back to ASCII-escaped JSON,
    so every frame is valid UTF-8.
    """
    payload = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    try:
        data = payload.encode("utf-8")
    except UnicodeEncodeError:
        data = json.dumps(value, separators=(",", ":")).encode("ascii")
    return data + TERMINATOR


def is_valid_method(method: Any) -> bool:
    """Check a fully qualified method name.

    At least two dot-separated segments; each starts with an ASCII letter
    and continues with ASCII letters, digits or underscores.
    """
    if not isinstance(method, str):
        return False
    segments = method.split(".")
    if len(segments) < 2:
        return False
    return all(
        segment
        and segment[0] in string.ascii_letters
        and all(char in _IDENTIFIER_CHARS for char in segment[1:])
        for segment in segments
    )


@dataclass
class Call:
    """A decoded varlink method call."""

    method: str
    parameters: dict[str, Any] = field(default_factory=dict)
    more: bool = False
    oneway: bool = False

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"method": self.method, "parameters": self.parameters}
        if self.more:
            d["more"] = True
        if self.oneway:
            d["oneway"] = True
        return d

    def to_bytes(self) -> bytes:
        return encode_frame(self.to_dict())


def parse_call(data: bytes) -> Call:
    """Decode and validate one frame as a call object.

    Raises:
        VarlinkError: InvalidParameter for malformed JSON or call structure.
    """
    try:
        payload = json.loads(data)
    except ValueError:
        # Covers JSONDecodeError and UnicodeDecodeError
        raise VarlinkError(ErrorName.INVALID_PARAMETER, "Invalid JSON") from None

    if not isinstance(payload, dict) or "method" not in payload:
        raise VarlinkError(ErrorName.INVALID_PARAMETER, "Missing method")

    method = payload["method"]
    if not is_valid_method(method):
        raise VarlinkError(ErrorName.INVALID_PARAMETER, "Invalid method format")

    parameters = payload.get("parameters")
    if parameters is None:
        parameters = {}
    elif not isinstance(parameters, dict):
        raise VarlinkError(
            ErrorName.INVALID_PARAMETER, "Invalid parameters", parameter="parameters"
        )

    return Call(
        method=method,
        parameters=parameters,
        more=bool(payload.get("more") or False),
        oneway=bool(payload.get("oneway") or False),
    )


@dataclass
class Reply:
    """A varlink reply, either success parameters or a named error."""

    parameters: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    continues: bool = False

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.error is not None:
            d["error"] = self.error
        d["parameters"] = self.parameters
        if self.continues:
            d["continues"] = True
        return d

    def to_bytes(self) -> bytes:
        """Serialize to a NUL-terminated frame."""
        return encode_frame(self.to_dict())

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def success(cls, parameters: dict[str, Any] | None = None) -> "Reply":
        return cls(parameters=parameters or {})

    @classmethod
    def error_reply(
        cls, error: str, description: str | None = None, **extra: Any
    ) -> "Reply":
        parameters: dict[str, Any] = {}
        if description:
            parameters["description"] = description
        parameters.update(extra)
        return cls(parameters=parameters, error=error)

    @classmethod
    def from_error(cls, exc: VarlinkError) -> "Reply":
        return cls.error_reply(exc.error, exc.description, **exc.extra)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Reply":
        return cls(
            parameters=data.get("parameters") or {},
            error=data.get("error"),
            continues=bool(data.get("continues", False)),
        )
