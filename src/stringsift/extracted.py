"""Strings carved out of binary content, normalized to UTF-8.

A record keeps the size of the original byte run and its offsets in the
source buffer, so reports can point back into the binary even after wide
strings were transcoded.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from stringsift.model import StringModel, score_bytes

WIDE_CODECS = {2: "utf-16-le", 4: "utf-32-le"}
WIDE_ERROR_POLICIES = ("strict", "replace")
INTERESTING_THRESHOLD = 0.5


class TranscodingError(ValueError):
    """Raised when source bytes cannot be turned into valid UTF-8 text."""


class StringType(Enum):
    """How the original bytes were interpreted at extraction time."""

    UNDETERMINED = "UNDETERMINED"
    UTF8 = "UTF8"
    WIDE_STRING = "WIDE_STRING"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class ExtractedString:
    text: str = ""
    source_type: StringType = StringType.UNDETERMINED
    size_in_bytes: int = 0
    offset_start: int = 0
    offset_end: int = 0

    @classmethod
    def from_narrow(
        cls,
        data: bytes,
        source_type: StringType = StringType.UTF8,
        offset_start: int = 0,
        offset_end: int = 0,
    ) -> ExtractedString:
        """Build from UTF-8 (or ASCII) bytes, copied without transcoding."""
        raw = bytes(data)
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TranscodingError(
                f"Narrow string at offset {offset_start} is not valid UTF-8: {exc.reason}"
            ) from exc
        return cls(
            text=text,
            source_type=source_type,
            size_in_bytes=len(raw),
            offset_start=offset_start,
            offset_end=offset_end,
        )

    @classmethod
    def from_wide(
        cls,
        data: bytes,
        source_type: StringType = StringType.WIDE_STRING,
        offset_start: int = 0,
        offset_end: int = 0,
        *,
        unit_size: int = 2,
        errors: str = "strict",
    ) -> ExtractedString:
        """Build from little-endian wide code units of *unit_size* bytes.

        With ``errors="strict"`` an odd-sized buffer or an unpaired surrogate
        raises :class:`TranscodingError`. ``errors="replace"`` substitutes
        U+FFFD for malformed units instead; a truncated final unit is still
        rejected since the buffer length itself is inconsistent.
        """
        codec = WIDE_CODECS.get(unit_size)
        if codec is None:
            raise ValueError(
                f"Unsupported wide unit size {unit_size}; choose from {sorted(WIDE_CODECS)}"
            )
        if errors not in WIDE_ERROR_POLICIES:
            raise ValueError(
                f"Unsupported error policy '{errors}'; choose from {WIDE_ERROR_POLICIES}"
            )
        raw = bytes(data)
        if len(raw) % unit_size:
            raise TranscodingError(
                f"Wide string at offset {offset_start} has {len(raw)} bytes, "
                f"not a multiple of the {unit_size}-byte unit size"
            )
        try:
            text = raw.decode(codec, errors=errors)
        except UnicodeDecodeError as exc:
            raise TranscodingError(
                f"Wide string at offset {offset_start} is malformed {codec}: {exc.reason}"
            ) from exc
        return cls(
            text=text,
            source_type=source_type,
            size_in_bytes=len(raw),
            offset_start=offset_start,
            offset_end=offset_end,
        )

    @property
    def encoded(self) -> bytes:
        return self.text.encode("utf-8")

    @property
    def type_string(self) -> str:
        return self.source_type.label

    def proba_interesting(self, model: StringModel) -> float:
        """Probability that this string is meaningful rather than gibberish."""
        return score_bytes(model, self.encoded)

    def is_interesting(self, model: StringModel) -> bool:
        return self.proba_interesting(model) > INTERESTING_THRESHOLD
