# backend/app/notion/client.py

"""
Notion API との通信を担当するクライアントモジュール。

- search / ページ取得 / ブロック子要素一覧 / データベース query の 4 種類の呼び出し
- 失敗は接続エラー・HTTP エラー・デコードエラーの型付き例外として上位に返す
- 自動リトライは行わない（判断は呼び出し側に任せる）
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from .config import NotionSettings, get_settings

logger = logging.getLogger(__name__)

_KNOWN_KEY_PREFIXES = ("ntn_", "secret_")


class NotionClientError(RuntimeError):
    """Notion クライアント全般の例外。"""


class NotionConnectionError(NotionClientError):
    """接続エラー・タイムアウト時の例外。"""


class NotionHTTPError(NotionClientError):
    """Notion が 2xx 以外のステータスを返した場合の例外。"""

    def __init__(self, status_code: int, body: Any | None = None) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Notion API error: {status_code} {_describe_error_body(body)}".rstrip())


class NotionAuthError(NotionHTTPError):
    """認証・権限関連のエラー (401 / 403)。"""


class NotionDecodeError(NotionClientError):
    """レスポンスボディを JSON オブジェクトとして解釈できなかった場合の例外。"""


def _describe_error_body(body: Any) -> str:
    """
    Notion のエラーボディ ({"code": ..., "message": ...}) を 1 行の文字列にする。
    """
    if isinstance(body, dict):
        code = body.get("code")
        message = body.get("message")
        if code and message:
            return f"{code}: {message}"
        if message:
            return str(message)
    if isinstance(body, str):
        return body.strip()[:500]
    return ""


def _path_segment(value: str) -> str:
    """
    ID を URL パスの 1 セグメントとしてエスケープする。
    '?' や '#' を含む ID でもクエリやフラグメントにならない。
    """
    return quote(value, safe="")


class NotionClient:
    """
    Notion API の薄い非同期ラッパークライアント。

    アプリケーション全体で 1 インスタンスを共有する前提。
    設定は生成後に変更しない。
    """

    def __init__(
        self,
        settings: Optional[NotionSettings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or get_settings()

        if not self.settings.api_key.startswith(_KNOWN_KEY_PREFIXES):
            logger.warning(
                "NOTION_API_KEY does not look like a Notion integration token "
                "(expected prefix 'ntn_' or 'secret_')."
            )

        self._client = httpx.AsyncClient(
            base_url=self.settings.api_base_url,
            headers=self._build_headers(),
            timeout=httpx.Timeout(self.settings.timeout_seconds),
            transport=transport,
        )

    def _build_headers(self) -> Dict[str, str]:
        """
        Notion API 呼び出しに必要なヘッダーを構築。
        """
        return {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Notion-Version": self.settings.api_version,
            "Content-Type": "application/json",
        }

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        1 回だけ HTTP リクエストを送り、JSON オブジェクトを返す。

        :raises NotionConnectionError: 接続エラーやタイムアウト時。
        :raises NotionHTTPError: Notion が 4xx/5xx を返した場合。
        :raises NotionDecodeError: 2xx だがボディが JSON オブジェクトでない場合。
        """
        logger.debug("Notion request: %s %s", method, path)

        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.TimeoutException as exc:
            logger.error("Notion request timed out: %s %s", method, path)
            raise NotionConnectionError(f"Timed out calling Notion API: {exc}") from exc
        except httpx.RequestError as exc:
            logger.error("Failed to call Notion API: %s %s: %s", method, path, exc)
            raise NotionConnectionError(f"Failed to call Notion API: {exc}") from exc

        self._raise_for_status(response)

        try:
            data = response.json()
        except ValueError as exc:
            logger.error("Undecodable Notion response for %s %s", method, path)
            raise NotionDecodeError(f"Failed to decode Notion API response: {exc}") from exc

        if not isinstance(data, dict):
            raise NotionDecodeError("Unexpected Notion API response format: body is not an object.")

        return data

    def _raise_for_status(self, response: httpx.Response) -> None:
        """
        HTTP レスポンスコードに応じて適切な例外を投げる。
        """
        if response.status_code // 100 == 2:
            return

        try:
            body = response.json()
        except ValueError:
            body = response.text

        logger.warning(
            "Notion API returned %s for %s %s",
            response.status_code,
            response.request.method,
            response.request.url.path,
        )

        if response.status_code in (401, 403):
            raise NotionAuthError(response.status_code, body)
        raise NotionHTTPError(response.status_code, body)

    async def search(
        self,
        query: str,
        limit: Optional[int] = None,
        *,
        start_cursor: Optional[str] = None,
        filter: Optional[Dict[str, Any]] = None,
        sort: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        POST /search を呼び出す。limit 省略時の件数は Notion 側のデフォルトに従う。
        """
        payload: Dict[str, Any] = {"query": query}
        if limit is not None:
            payload["page_size"] = limit
        if start_cursor is not None:
            payload["start_cursor"] = start_cursor
        if filter is not None:
            payload["filter"] = filter
        if sort is not None:
            payload["sort"] = sort

        return await self._request("POST", "/search", json=payload)

    async def retrieve_page(self, page_id: str) -> Dict[str, Any]:
        """GET /pages/{page_id}"""
        return await self._request("GET", f"/pages/{_path_segment(page_id)}")

    async def list_block_children(
        self,
        block_id: str,
        *,
        start_cursor: Optional[str] = None,
        page_size: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        GET /blocks/{block_id}/children の 1 ページ分を取得する。
        続きの取得（カーソル追跡）はサービス層の責務。
        """
        params: Dict[str, Any] = {}
        if start_cursor is not None:
            params["start_cursor"] = start_cursor
        if page_size is not None:
            params["page_size"] = page_size

        return await self._request(
            "GET",
            f"/blocks/{_path_segment(block_id)}/children",
            params=params or None,
        )

    async def query_database(
        self,
        database_id: str,
        page_size: Optional[int] = None,
        *,
        filter: Optional[Dict[str, Any]] = None,
        sorts: Optional[list] = None,
        start_cursor: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        POST /databases/{database_id}/query を 1 回だけ呼び出す。
        page_size の上限チェックは Notion 側のバリデーションに任せる。
        """
        payload: Dict[str, Any] = {}
        if page_size is not None:
            payload["page_size"] = page_size
        if filter is not None:
            payload["filter"] = filter
        if sorts is not None:
            payload["sorts"] = sorts
        if start_cursor is not None:
            payload["start_cursor"] = start_cursor

        return await self._request("POST", f"/databases/{_path_segment(database_id)}/query", json=payload)

    async def validate_connection(self) -> None:
        """
        API キーと疎通を確認する。最小件数の search を 1 回投げるだけ。
        """
        logger.debug("Validating connection to Notion API...")
        await self.search("", limit=1)
        logger.debug("Connection to Notion API validated.")
