"""Minimal HTTP helpers for the Baidu Netdisk client.

The implementation uses :mod:`urllib` from the Python standard library.
Failures are raised as :class:`~dkci.core.errors.CloudError` so the command
handlers decide whether to abort or move on to the next item.
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import Any, Dict, Mapping
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from .errors import CloudError
from .utils import CHUNK_SIZE, write_chunks

USER_AGENT = "pan.baidu.com"


def build_url(url: str, params: Mapping[str, Any] | None = None) -> str:
    if not params:
        return url
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}{urlencode({k: v for k, v in params.items() if v is not None})}"


def _decode(raw: bytes) -> Dict[str, Any]:
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise CloudError(f"Unexpected response: {raw[:200]!r}") from e
    if not isinstance(data, dict):
        raise CloudError(f"Unexpected response: {data!r}")
    return data


def http_json(
    method: str,
    url: str,
    params: Mapping[str, Any] | None = None,
    form: Mapping[str, Any] | None = None,
    *,
    timeout: int = 60,
) -> Dict[str, Any]:
    """Perform a request and return the parsed JSON object.

    ``form`` is sent as ``application/x-www-form-urlencoded``.  The OAuth
    endpoints answer pending or failed grants with HTTP 400 and a JSON body;
    such bodies are returned as-is for the caller to inspect.
    """

    headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
    data = None
    if form is not None:
        headers["Content-Type"] = "application/x-www-form-urlencoded"
        data = urlencode(form).encode("utf-8")
    req = Request(url=build_url(url, params), method=method.upper(), headers=headers, data=data)
    try:
        with urlopen(req, timeout=timeout) as resp:
            return _decode(resp.read())
    except HTTPError as e:
        return _handle_http_error(e)
    except URLError as e:
        raise CloudError(f"Network error: {e.reason}") from e


def http_multipart_post(
    url: str,
    fields: Dict[str, object],
    params: Mapping[str, Any] | None = None,
    *,
    timeout: int = 300,
) -> Dict[str, Any]:
    """Send a multipart/form-data POST request.

    ``fields`` is a mapping where each value is either a simple string/bytes or
    a tuple ``(filename, content)`` for file uploads.
    """

    boundary = f"----dkci{uuid.uuid4().hex}"

    def to_b(x):
        return x if isinstance(x, (bytes, bytearray)) else str(x).encode("utf-8")

    parts: list[bytes] = []
    for name, value in (fields or {}).items():
        parts.append(f"--{boundary}\r\n".encode())
        if isinstance(value, tuple):
            filename, content = value
            parts.append(
                f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'.encode()
            )
            parts.append(b"Content-Type: application/octet-stream\r\n\r\n")
            parts.append(to_b(content))
            parts.append(b"\r\n")
        else:
            parts.append(f'Content-Disposition: form-data; name="{name}"\r\n\r\n'.encode())
            parts.append(to_b(value))
            parts.append(b"\r\n")
    parts.append(f"--{boundary}--\r\n".encode())
    body = b"".join(parts)

    headers = {
        "Accept": "application/json",
        "User-Agent": USER_AGENT,
        "Content-Type": f"multipart/form-data; boundary={boundary}",
    }
    req = Request(url=build_url(url, params), method="POST", headers=headers, data=body)
    try:
        with urlopen(req, timeout=timeout) as resp:
            return _decode(resp.read())
    except HTTPError as e:
        return _handle_http_error(e)
    except URLError as e:
        raise CloudError(f"Network error: {e.reason}") from e


def http_download(
    url: str,
    dest: Path,
    params: Mapping[str, Any] | None = None,
    *,
    desc: str | None = None,
    timeout: int = 300,
) -> Path:
    """Stream ``url`` into ``dest``; redirects are followed by urllib."""

    req = Request(url=build_url(url, params), headers={"User-Agent": USER_AGENT})
    try:
        with urlopen(req, timeout=timeout) as resp:
            length = resp.headers.get("Content-Length")
            total = int(length) if length and length.isdigit() else None
            chunks = iter(lambda: resp.read(CHUNK_SIZE), b"")
            try:
                with open(dest, "wb") as out:
                    write_chunks(chunks, out, total=total, desc=desc)
            except BaseException:
                # A partial archive must not be mistaken for a complete one
                dest.unlink(missing_ok=True)
                raise
    except HTTPError as e:
        body = e.read().decode("utf-8", errors="ignore")
        raise CloudError(f"[HTTP {e.code}] download failed: {body or e.reason}") from e
    except URLError as e:
        raise CloudError(f"Network error: {e.reason}") from e
    except OSError as e:
        raise CloudError(f"Download of {dest.name} failed: {e}") from e
    return dest


def _handle_http_error(e: HTTPError) -> Dict[str, Any]:
    body = e.read().decode("utf-8", errors="ignore")
    try:
        data = json.loads(body)
    except ValueError:
        data = None
    if isinstance(data, dict) and ("error" in data or "errno" in data):
        return data

    if e.code in (401, 403):
        raise CloudError(f"Authentication failed: {body or e.reason}")
    raise CloudError(f"[HTTP {e.code}] {body or e.reason}")
