# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Cookbook Store Client

Client for the remote cookbook store. Handles:
- One authenticated HTTP session per upload run
- Sandbox negotiation and file transfer
- Cookbook manifest upload, with frozen-version conflicts surfaced as
  CookbookFrozenError
"""

import base64
import hashlib
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

import httpx

from cookbook_uploader.core.config import Config
from cookbook_uploader.core.errors import CookbookFrozenError, StoreError

from .cookbook import CookbookVersion

logger = logging.getLogger(__name__)


class StoreSession:
    """Authenticated session against the store, valid inside `CookbookStore.connect()`"""

    def __init__(self, client: httpx.Client):
        self.client = client

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {url} failed: {e}")

        if response.is_error:
            raise StoreError(
                f"{method} {url} returned HTTP {response.status_code}: {response.text}",
                status_code=response.status_code
            )
        return response

    def upload(
        self,
        cookbook_version: CookbookVersion,
        force: bool = False,
        concurrency: int = 1
    ) -> Dict[str, Any]:
        """
        Upload one cookbook version.

        Args:
            cookbook_version: Cookbook to upload
            force: Ask the store to overwrite a frozen version
            concurrency: Maximum parallel file transfers within this cookbook

        Returns:
            Store response for the cookbook manifest

        Raises:
            CookbookFrozenError: If the version is frozen on the store
            StoreError: On any other store failure
        """
        name, version = cookbook_version.name, cookbook_version.version
        checksums = cookbook_version.checksums()

        sandbox = self._json(self._request(
            "POST", "sandboxes",
            json={"checksums": {checksum: None for checksum in checksums}}
        ))
        sandbox_id = sandbox.get("sandbox_id")
        if not sandbox_id:
            raise StoreError("Sandbox response has no sandbox_id", details={"response": sandbox})

        pending = []
        for checksum, info in (sandbox.get("checksums") or {}).items():
            if checksum not in checksums:
                raise StoreError(f"Sandbox response lists unknown checksum {checksum}")
            if not isinstance(info, dict):
                raise StoreError(f"Malformed sandbox entry for checksum {checksum}")
            if info.get("needs_upload"):
                if not info.get("url"):
                    raise StoreError(f"Sandbox entry for checksum {checksum} has no upload url")
                pending.append((checksums[checksum], info["url"]))
        logger.debug(f"  {name}: {len(pending)} of {len(checksums)} file(s) need upload")

        if concurrency <= 1:
            for file_path, url in pending:
                self._upload_file(file_path, url)
        else:
            with ThreadPoolExecutor(max_workers=concurrency) as pool:
                list(pool.map(lambda item: self._upload_file(*item), pending))

        self._request("PUT", f"sandboxes/{sandbox_id}", json={"is_completed": True})

        params = {"force": "true"} if force else None
        try:
            response = self._request(
                "PUT", f"cookbooks/{name}/{version}",
                json=cookbook_version.manifest(),
                params=params
            )
        except StoreError as e:
            if e.status_code == 409:
                raise CookbookFrozenError(name, version)
            raise
        return self._json(response) if response.content else {}

    def _json(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise StoreError(f"{response.request.method} {response.request.url} returned invalid JSON: {e}")
        if not isinstance(data, dict):
            raise StoreError(f"{response.request.method} {response.request.url} returned a non-object body")
        return data

    def _upload_file(self, file_path: Path, url: str):
        try:
            content = file_path.read_bytes()
        except OSError as e:
            raise StoreError(f"Cannot read {file_path} for upload: {e}")
        digest = base64.b64encode(hashlib.md5(content).digest()).decode("ascii")
        self._request(
            "PUT", url,
            content=content,
            headers={"Content-Type": "application/x-binary", "Content-MD5": digest}
        )


class CookbookStore:
    """Factory for store sessions"""

    def __init__(
        self,
        url: str,
        client_name: str,
        token: Optional[str] = None,
        ssl_verify: bool = True,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Initialize store client.

        Args:
            url: Store base URL (organization endpoint)
            client_name: Client identity sent as X-Ops-UserId
            token: API token, sent as bearer token when set
            ssl_verify: Verify TLS certificates
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.url = url
        self.client_name = client_name
        self.token = token
        self.ssl_verify = ssl_verify
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_config(cls, config: Config) -> "CookbookStore":
        return cls(
            url=config.store_url,
            client_name=config.client_name,
            token=config.get_store_token(),
            ssl_verify=config.ssl_verify,
            timeout=config.http_timeout
        )

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "X-Ops-UserId": self.client_name,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @contextmanager
    def connect(self) -> Iterator[StoreSession]:
        """Open one session for the whole run; closed on exit, error or not"""
        client = httpx.Client(
            base_url=self.url,
            headers=self._headers(),
            verify=self.ssl_verify,
            timeout=self.timeout,
            transport=self.transport
        )
        logger.debug(f"Connected to store {self.url} as {self.client_name}")
        try:
            yield StoreSession(client)
        finally:
            client.close()
