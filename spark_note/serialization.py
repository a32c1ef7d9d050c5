"""
Spark Note Serialization

Versioned JSON export of spent nullifier sets, and JSON encoding of domain
objects. Secrets have no wire form: the encoder writes a placeholder, and
nothing here can rebuild a secret-bearing object from wire data.

Export format:
    {"version": 1, "nullifiers": ["<64 lowercase hex chars>", ...]}
"""

from __future__ import annotations
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Union

from spark_note.constants import EXPORT_FORMAT_VERSION, NULLIFIER_LENGTH
from spark_note.core.secret import Secret
from spark_note.core.types import Nullifier
from spark_note.errors import SerializationError
from spark_note.protocol.note import Note, PublicNote
from spark_note.state.nullifier_set import NullifierLike, NullifierSet

logger = logging.getLogger(__name__)

CURRENT_VERSION = EXPORT_FORMAT_VERSION

_HEX_NULLIFIER = re.compile(r"[0-9a-fA-F]{%d}" % (NULLIFIER_LENGTH * 2))


@dataclass
class NullifierSetExport:
    """Versioned nullifier set for export/import."""
    version: int = CURRENT_VERSION
    nullifiers: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"version": self.version, "nullifiers": list(self.nullifiers)}

    @classmethod
    def from_dict(cls, data: Any) -> NullifierSetExport:
        if not isinstance(data, dict):
            raise SerializationError("Nullifier set export must be a JSON object")

        version = data.get("version")
        nullifiers = data.get("nullifiers")

        if isinstance(version, bool) or not isinstance(version, int):
            raise SerializationError(f"Invalid version field: {version!r}")
        if not isinstance(nullifiers, list):
            raise SerializationError("Field 'nullifiers' must be a list")

        return cls(version=version, nullifiers=nullifiers)


class SparkJSONEncoder(json.JSONEncoder):
    """
    JSON encoder for Spark domain objects.

    - Secret: "" placeholder, never the bytes
    - Note / PublicNote: public projection
    - Nullifier / bytes: lowercase hex
    """

    def default(self, o: Any) -> Any:
        if isinstance(o, Secret):
            return ""
        if isinstance(o, Note):
            return o.to_public().to_dict()
        if isinstance(o, PublicNote):
            return o.to_dict()
        if isinstance(o, Nullifier):
            return o.hex()
        if isinstance(o, (bytes, bytearray)):
            return bytes(o).hex()
        if isinstance(o, NullifierSet):
            return _build_export(o).to_dict()
        return super().default(o)


def _build_export(nullifiers: Iterable[NullifierLike]) -> NullifierSetExport:
    encoded = sorted(Nullifier.coerce(n).hex() for n in nullifiers)
    return NullifierSetExport(version=CURRENT_VERSION, nullifiers=encoded)


def export_nullifier_set(spent_set: Union[NullifierSet, Iterable[NullifierLike]]) -> str:
    """
    Export a nullifier set to JSON.

    Entries are sorted so equal sets export identically.
    """
    try:
        export = _build_export(spent_set)
        return json.dumps(export.to_dict())
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to serialize nullifier set: {e}") from e


def decode_nullifier_hex(hex_nullifier: Any) -> Nullifier:
    """Decode one exported nullifier string."""
    if not isinstance(hex_nullifier, str):
        raise SerializationError(f"Nullifier entry must be a string, got {type(hex_nullifier).__name__}")
    if not _HEX_NULLIFIER.fullmatch(hex_nullifier):
        raise SerializationError(
            f"Invalid nullifier encoding: expected {NULLIFIER_LENGTH * 2} hex chars, "
            f"got {hex_nullifier[:16]!r} ({len(hex_nullifier)} chars)"
        )
    return Nullifier(bytes.fromhex(hex_nullifier))


def import_nullifier_set(payload: Union[str, bytes]) -> NullifierSet:
    """
    Import a nullifier set from JSON.

    The whole payload is decoded before a set is built, so a single bad
    entry fails the import with nothing imported.

    Raises:
        SerializationError: malformed JSON, unsupported version, bad entry
    """
    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to deserialize nullifier set: {e}") from e

    export = NullifierSetExport.from_dict(data)

    if export.version > CURRENT_VERSION:
        raise SerializationError(
            f"Unsupported version: {export.version} (current: {CURRENT_VERSION})"
        )
    # Older versions are read as the current format; only a negative
    # number is not a version at all
    if export.version < 0:
        raise SerializationError(f"Invalid version: {export.version}")

    decoded = [decode_nullifier_hex(h) for h in export.nullifiers]

    logger.debug(f"Imported {len(decoded)} nullifiers (format v{export.version})")
    return NullifierSet(decoded)


def dump_note(note: Union[Note, PublicNote]) -> str:
    """Public JSON form of a note."""
    return json.dumps(note, cls=SparkJSONEncoder)


def load_public_note(payload: Union[str, bytes]) -> PublicNote:
    """Parse the public projection of a note."""
    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to deserialize public note: {e}") from e
    return PublicNote.from_dict(data)


def load_note(payload: Union[str, bytes]) -> Note:
    """
    Full notes cannot be loaded from wire data.

    Raises:
        SerializationError: always
    """
    raise SerializationError(
        "Note cannot be deserialized - secrets must not be loaded from untrusted sources"
    )
