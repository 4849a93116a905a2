# -*- coding: utf-8 -*-
"""
HTTP 网络获取器
"""

import json
import logging
from typing import Any, Optional

import httpx

from ..exceptions import ManifestFormatError, NetworkError
from .base import NetworkFetcher

logger = logging.getLogger(__name__)


class HttpFetcher(NetworkFetcher):
    """
    基于 httpx 的获取器

    每次失败都直接抛出 NetworkError，不做重试。
    """

    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = "emeraecm",
        client: Optional[httpx.Client] = None,
    ):
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        )

    def _get(self, url: str) -> httpx.Response:
        logger.debug(f"GET {url}")
        try:
            response = self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NetworkError(url, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise NetworkError(url, str(e) or type(e).__name__) from e
        return response

    def fetch_json(self, url: str) -> Any:
        response = self._get(url)
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ManifestFormatError(f"描述符不是合法的 JSON {url}: {e}") from e

    def fetch_text(self, url: str) -> str:
        return self._get(url).text

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "HttpFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
