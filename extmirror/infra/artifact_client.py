"""
Artifact download client for extmirror.

Fetches the release archive of one package version from
``{base}/{key}/{version}/artifact/``.
"""

import logging
from pathlib import Path
from typing import Optional, Dict, Any

import requests

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class ArtifactError(Exception):
    """The artifact could not be downloaded."""


class ArtifactClient:
    """Downloads release artifacts over HTTP."""

    def __init__(self, base_url: str, timeout: float = 60, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault('User-Agent', 'extmirror')

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'ArtifactClient':
        upstream = config.get('upstream', {})
        return cls(
            base_url=upstream.get('artifact_base_url', ''),
            timeout=upstream.get('timeout_seconds', 60),
        )

    def url_for(self, key: str, version: str) -> str:
        return f"{self.base_url}/{key}/{version}/artifact/"

    def download(self, key: str, version: str, destination: Path) -> Path:
        """
        Stream an artifact to ``destination``.

        Raises:
            ArtifactError: On network failure, non-200 status or empty body.
                A partially written file is removed.
        """
        url = self.url_for(key, version)
        destination = Path(destination)
        logger.debug(f"Downloading {url}")

        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                if response.status_code != 200:
                    raise ArtifactError(f"GET {url} returned {response.status_code}")
                written = 0
                with open(destination, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
                            written += len(chunk)
        except requests.RequestException as e:
            destination.unlink(missing_ok=True)
            raise ArtifactError(f"GET {url} failed: {e}") from e
        except OSError as e:
            destination.unlink(missing_ok=True)
            raise ArtifactError(f"Could not write {destination}: {e}") from e

        if written == 0:
            destination.unlink(missing_ok=True)
            raise ArtifactError(f"GET {url} returned an empty body")

        return destination
