"""
Job payload codec for extmirror.

A job is one Package with its pending versions. On the wire it is a JSON
document tagged with a schema number and compressed with zlib, so the
planner and the worker can be upgraded independently.
"""

import json
import zlib
from dataclasses import dataclass
from typing import Any, Dict

from .package import Package

SCHEMA_VERSION = 1
COMPRESSION_LEVEL = 9


class JobPayloadError(ValueError):
    """Raised when a queue payload cannot be decoded into a Package."""


def encode_package(package: Package) -> bytes:
    """Serialize a package into a compressed job payload."""
    document = {
        'schema': SCHEMA_VERSION,
        'package': package.to_dict(),
    }
    raw = json.dumps(document, separators=(',', ':')).encode('utf-8')
    return zlib.compress(raw, COMPRESSION_LEVEL)


def decode_package(payload: bytes) -> Package:
    """
    Decode a compressed job payload.

    Raises:
        JobPayloadError: payload is not valid zlib/JSON, has an unknown
            schema number or is missing package fields
    """
    try:
        document = json.loads(zlib.decompress(payload).decode('utf-8'))
    except (zlib.error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise JobPayloadError(f"Undecodable job payload: {e}") from e

    if not isinstance(document, dict):
        raise JobPayloadError("Job payload is not a JSON object")

    schema = document.get('schema')
    if schema != SCHEMA_VERSION:
        raise JobPayloadError(f"Unsupported job payload schema: {schema!r}")

    try:
        return Package.from_dict(document['package'])
    except (KeyError, TypeError, ValueError) as e:
        raise JobPayloadError(f"Malformed package in job payload: {e}") from e


@dataclass
class Job:
    """A reserved queue entry: broker id plus raw payload."""
    id: str
    tube: str
    payload: bytes

    def package(self) -> Package:
        return decode_package(self.payload)

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'tube': self.tube, 'size': len(self.payload)}
