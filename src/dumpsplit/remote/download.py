"""Fetching dump files over HTTP."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

import requests

LOGGER = logging.getLogger(__name__)

CHUNK_SIZE = 1 << 16


class DownloadError(RuntimeError):
    """Raised when the remote file cannot be fetched."""


def resolve_file_url(payload_item: Mapping[str, Any], source: Mapping[str, Any]) -> Optional[str]:
    """Pick the download URL from the payload item or the request body."""
    url = (
        payload_item.get("originFileUrl")
        or payload_item.get("fileUrl")
        or source.get("fileUrl")
        or source.get("simulatorFileUrl")
    )
    if url:
        return url

    base_url = source.get("simulatorBaseUrl")
    file_name = payload_item.get("fileName")
    if base_url and file_name:
        return f"{base_url.rstrip('/')}/{file_name.lstrip('/')}"
    return None


def resolve_file_name(payload_item: Mapping[str, Any], url: str) -> str:
    return (
        payload_item.get("title")
        or payload_item.get("fileName")
        or Path(urlparse(url).path).name
        or "downloaded_file"
    )


def _stream_to_file(
    http: requests.Session,
    url: str,
    dest_path: Path,
    headers: Optional[Mapping[str, str]],
    timeout: float,
) -> None:
    with http.get(url, headers=dict(headers or {}), stream=True, timeout=timeout) as response:
        if not response.ok:
            raise DownloadError(f"Download failed: {response.status_code} {response.reason}")
        with dest_path.open("wb") as handle:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    handle.write(chunk)


def download_file(
    url: str,
    dest_path: Path,
    *,
    headers: Optional[Mapping[str, str]] = None,
    session: Optional[requests.Session] = None,
    timeout: float = 300.0,
) -> Path:
    """Stream ``url`` to ``dest_path``.

    A session created here is closed once the body is written; an injected
    ``session`` is left open for the caller.
    """
    dest_path = Path(dest_path)
    LOGGER.info("Downloading %s", url)
    if session is not None:
        _stream_to_file(session, url, dest_path, headers, timeout)
    else:
        with requests.Session() as http:
            _stream_to_file(http, url, dest_path, headers, timeout)
    LOGGER.debug("Saved %s bytes to %s", dest_path.stat().st_size, dest_path)
    return dest_path
