"""Baidu Netdisk ("BDFS") client built on the helpers in :mod:`.http`.

Only the handful of open-platform endpoints dkci needs are covered:
device-code OAuth, directory listing, file metadata, the three-step
chunked upload and dlink downloads.
"""

from __future__ import annotations

import hashlib
import json
import os
import posixpath
import time
from pathlib import Path
from typing import Any, Dict, List

from .config import BDFSConfig
from .errors import CloudError, CloudNotFoundError
from .http import http_download, http_json, http_multipart_post
from .utils import info, tqdm

OAUTH_BASE = "https://openapi.baidu.com/oauth/2.0"
FILE_API = "https://pan.baidu.com/rest/2.0/xpan/file"
MULTIMEDIA_API = "https://pan.baidu.com/rest/2.0/xpan/multimedia"
UPLOAD_API = "https://d.pcs.baidu.com/rest/2.0/pcs/superfile2"

SCOPE = "basic,netdisk"
BLOCK_SIZE = 4 * 1024 * 1024
LIST_LIMIT = 1000
# Refresh a little before the server-side expiry
EXPIRY_MARGIN = 300


def _check(data: Dict[str, Any], what: str) -> Dict[str, Any]:
    errno = data.get("errno", 0)
    if errno:
        msg = data.get("errmsg") or data.get("show_msg") or ""
        raise CloudError(f"{what} failed (errno {errno}) {msg}".rstrip(), errno=errno)
    return data


def normalize_remote(path: str) -> str:
    path = "/" + path.strip().lstrip("/")
    if len(path) > 1:
        path = path.rstrip("/")
    return posixpath.normpath(path)


class BDFSClient:
    """Thin client for the Baidu Netdisk open API."""

    def __init__(self, client_id: str, client_secret: str, token_path: str) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_path = Path(os.path.expanduser(token_path))
        self._token: Dict[str, Any] = {}

    @classmethod
    def from_config(cls, config: BDFSConfig) -> "BDFSClient":
        return cls(config.client_id, config.client_secret, config.token_path)

    # --- authorization ---------------------------------------------------

    @property
    def access_token(self) -> str:
        token = self._token.get("access_token")
        if not token:
            raise CloudError("Not authorized; call authorize() first")
        return token

    def _load_token(self) -> Dict[str, Any]:
        if not self.token_path.exists():
            return {}
        try:
            data = json.loads(self.token_path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}
        return data if isinstance(data, dict) else {}

    def _save_token(self, data: Dict[str, Any]) -> None:
        token = {
            "access_token": data["access_token"],
            "refresh_token": data.get("refresh_token", ""),
            "expires_at": int(time.time()) + int(data.get("expires_in", 0)),
        }
        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.token_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        # O_CREAT's mode does not apply to a file that already exists
        os.fchmod(fd, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(json.dumps(token, indent=2))
        self._token = token

    def _request_token(self, params: Dict[str, Any]) -> Dict[str, Any]:
        params = {**params, "client_id": self.client_id, "client_secret": self.client_secret}
        return http_json("GET", f"{OAUTH_BASE}/token", params)

    def _refresh(self, refresh_token: str) -> bool:
        data = self._request_token({"grant_type": "refresh_token", "refresh_token": refresh_token})
        if not data.get("access_token"):
            return False
        self._save_token(data)
        return True

    def _device_login(self) -> None:
        code = http_json(
            "GET",
            f"{OAUTH_BASE}/device/code",
            {"response_type": "device_code", "client_id": self.client_id, "scope": SCOPE},
        )
        if code.get("error") or not code.get("device_code"):
            raise CloudError(f"Device code request failed: {code.get('error_description') or code}")
        info(f"Open {code.get('verification_url')} and enter code {code.get('user_code')}")
        if code.get("qrcode_url"):
            info(f"Or scan: {code['qrcode_url']}")

        interval = int(code.get("interval") or 5)
        deadline = time.monotonic() + int(code.get("expires_in") or 300)
        while time.monotonic() < deadline:
            time.sleep(interval)
            data = self._request_token({"grant_type": "device_token", "code": code["device_code"]})
            if data.get("access_token"):
                self._save_token(data)
                return
            error = data.get("error")
            if error == "authorization_pending":
                continue
            if error == "slow_down":
                interval += 5
                continue
            raise CloudError(f"Authorization failed: {data.get('error_description') or error}")
        raise CloudError("Authorization timed out")

    def authorize(self) -> None:
        """Make sure a usable access token is available.

        A cached token is reused until shortly before it expires, then
        refreshed.  Without a usable cached token the device-code flow asks the
        user to confirm the login in a browser.
        """
        cached = self._load_token()
        if cached.get("access_token") and cached.get("expires_at", 0) > time.time() + EXPIRY_MARGIN:
            self._token = cached
            return
        if cached.get("refresh_token") and self._refresh(cached["refresh_token"]):
            return
        self._device_login()

    # --- listing ---------------------------------------------------------

    def list_files(self, path: str) -> List[Dict[str, Any]]:
        """Return every entry of the remote directory ``path``."""
        remote = normalize_remote(path)
        entries: List[Dict[str, Any]] = []
        start = 0
        while True:
            data = _check(
                http_json(
                    "GET",
                    FILE_API,
                    {
                        "method": "list",
                        "access_token": self.access_token,
                        "dir": remote,
                        "start": start,
                        "limit": LIST_LIMIT,
                    },
                ),
                f"Listing {remote}",
            )
            page = data.get("list") or []
            entries.extend(page)
            if len(page) < LIST_LIMIT:
                return entries
            start += LIST_LIMIT

    def get_file_info(self, path: str) -> Dict[str, Any]:
        remote = normalize_remote(path)
        if remote == "/":
            return {"path": "/", "server_filename": "", "isdir": 1}
        parent = posixpath.dirname(remote)
        for entry in self.list_files(parent):
            if entry.get("path") == remote:
                return entry
        raise CloudNotFoundError(f"{remote} not found")

    # --- transfers -------------------------------------------------------

    def upload_file(self, local_path: Path, remote_path: str) -> Dict[str, Any]:
        """Upload ``local_path`` to ``remote_path``, overwriting any existing file."""
        local_path = Path(local_path)
        remote = normalize_remote(remote_path)
        size = local_path.stat().st_size

        with open(local_path, "rb") as fh:
            block_md5 = [hashlib.md5(block).hexdigest() for block in iter(lambda: fh.read(BLOCK_SIZE), b"")]
        if not block_md5:
            block_md5 = [hashlib.md5(b"").hexdigest()]
        block_list = json.dumps(block_md5)

        pre = _check(
            http_json(
                "POST",
                FILE_API,
                {"method": "precreate", "access_token": self.access_token},
                {
                    "path": remote,
                    "size": size,
                    "isdir": 0,
                    "autoinit": 1,
                    "rtype": 3,
                    "block_list": block_list,
                },
            ),
            f"Precreate {remote}",
        )
        upload_id = pre.get("uploadid")
        if not upload_id:
            raise CloudError(f"Precreate {remote} returned no uploadid")
        # Blocks the server already has are omitted from the list
        wanted = pre.get("block_list")
        if wanted is None:
            wanted = list(range(len(block_md5)))

        with open(local_path, "rb") as fh, tqdm(
            total=size, unit="B", unit_scale=True, unit_divisor=1024, desc="Uploading", leave=False
        ) as bar:
            for seq in range(len(block_md5)):
                block = fh.read(BLOCK_SIZE)
                if seq in wanted:
                    http_multipart_post(
                        UPLOAD_API,
                        {"file": (local_path.name, block)},
                        {
                            "method": "upload",
                            "access_token": self.access_token,
                            "type": "tmpfile",
                            "path": remote,
                            "uploadid": upload_id,
                            "partseq": seq,
                        },
                    )
                bar.update(len(block))

        return _check(
            http_json(
                "POST",
                FILE_API,
                {"method": "create", "access_token": self.access_token},
                {
                    "path": remote,
                    "size": size,
                    "isdir": 0,
                    "rtype": 3,
                    "uploadid": upload_id,
                    "block_list": block_list,
                },
            ),
            f"Create {remote}",
        )

    def download_file(self, remote_path: str, dest: Path) -> Path:
        """Download ``remote_path`` into the local file ``dest``."""
        entry = self.get_file_info(remote_path)
        if entry.get("isdir"):
            raise CloudError(f"{entry.get('path')} is a directory")
        metas = _check(
            http_json(
                "GET",
                MULTIMEDIA_API,
                {
                    "method": "filemetas",
                    "access_token": self.access_token,
                    "fsids": json.dumps([entry["fs_id"]]),
                    "dlink": 1,
                },
            ),
            f"File metadata for {entry.get('path')}",
        )
        items = metas.get("list") or []
        dlink = items[0].get("dlink") if items else None
        if not dlink:
            raise CloudError(f"No download link for {entry.get('path')}")
        return http_download(
            dlink,
            Path(dest),
            {"access_token": self.access_token},
            desc="Downloading",
        )
