# backend/app/notion/service.py

"""
NotionClient とルーターをつなぐサービス層。

- 入力 ID の検証（上流を呼ぶ前に失敗させる）
- ブロック子要素のページネーション集約
- ブロック列 → プレーンテキストの抽出
"""

import logging
from typing import Any, Dict, List, Optional

from app.errors import FailureSource, GatewayError

from .client import NotionClient, NotionDecodeError
from .schemas import DatabaseQueryRequest, PageContentResponse, SearchRequest

logger = logging.getLogger(__name__)

BLOCK_PAGE_SIZE = 100

# rich_text を持ち、本文テキストとして扱うブロック種別
TEXT_BLOCK_TYPES = (
    "paragraph",
    "heading_1",
    "heading_2",
    "heading_3",
    "bulleted_list_item",
    "numbered_list_item",
    "to_do",
    "toggle",
    "quote",
    "callout",
    "code",
)


def _require_id(value: str, name: str) -> str:
    """
    パスやボディで受け取った ID を検証する。空・空白のみ・'/' を含む値は不可。
    ID は不透明な値なので、通過した値は加工せずそのまま返す。
    """
    if not isinstance(value, str) or not value.strip():
        raise GatewayError(FailureSource.VALIDATION, f"'{name}' must not be empty.")
    if "/" in value:
        raise GatewayError(FailureSource.VALIDATION, f"'{name}' must not contain '/'.")
    return value


def _extract_rich_text(rich_text: Any) -> str:
    """
    rich_text 配列からプレーンテキストを連結する。
    plain_text が無い要素は text.content にフォールバックする。
    """
    if not isinstance(rich_text, list):
        return ""

    parts: List[str] = []
    for item in rich_text:
        if not isinstance(item, dict):
            continue
        text = item.get("plain_text")
        if not isinstance(text, str):
            content = item.get("text")
            text = content.get("content") if isinstance(content, dict) else None
        if isinstance(text, str):
            parts.append(text)
    return "".join(parts)


def extract_text_from_blocks(blocks: List[Dict[str, Any]]) -> str:
    """
    ブロック列からテキストを持つものだけを取り出し、空行区切りで連結する。
    """
    paragraphs: List[str] = []
    for block in blocks:
        block_type = block.get("type")
        if block_type not in TEXT_BLOCK_TYPES:
            continue
        body = block.get(block_type)
        if not isinstance(body, dict):
            continue
        paragraphs.append(_extract_rich_text(body.get("rich_text")))
    return "\n\n".join(paragraphs)


class NotionService:
    """
    ルーターから呼ばれる 4 つの操作。

    search / get_page / query_database は Notion のレスポンスをそのまま返す。
    get_page_content だけがカーソルを追って複数回 Notion を呼ぶ。
    """

    def __init__(self, client: NotionClient, *, max_block_pages: Optional[int] = None) -> None:
        self.client = client
        self.max_block_pages = max_block_pages or client.settings.max_block_pages

    async def search(self, request: SearchRequest) -> Dict[str, Any]:
        return await self.client.search(
            request.query,
            request.limit,
            start_cursor=request.start_cursor,
            filter=request.filter,
            sort=request.sort,
        )

    async def get_page(self, page_id: str) -> Dict[str, Any]:
        page_id = _require_id(page_id, "page_id")
        return await self.client.retrieve_page(page_id)

    async def get_page_content(self, page_id: str) -> PageContentResponse:
        """
        ページ直下のブロックを全件取得する。

        has_more が false になるまで next_cursor を追い、受信順に連結する。
        途中のページで失敗した場合は取得済みの分も捨てて例外をそのまま上げる。
        max_block_pages 回を超えても終わらない場合もエラーとし、部分結果は返さない。
        """
        page_id = _require_id(page_id, "page_id")

        blocks: List[Dict[str, Any]] = []
        cursor: Optional[str] = None

        for page_number in range(1, self.max_block_pages + 1):
            data = await self.client.list_block_children(
                page_id,
                start_cursor=cursor,
                page_size=BLOCK_PAGE_SIZE,
            )

            results = data.get("results")
            if not isinstance(results, list):
                raise NotionDecodeError("Unexpected Notion API response format: 'results' is not a list.")
            blocks.extend(results)

            if not data.get("has_more"):
                logger.debug(
                    "Fetched %d blocks for page %s in %d request(s)",
                    len(blocks),
                    page_id,
                    page_number,
                )
                return PageContentResponse(blocks=blocks, text=extract_text_from_blocks(blocks))

            cursor = data.get("next_cursor")
            if not isinstance(cursor, str) or not cursor:
                raise NotionDecodeError(
                    "Unexpected Notion API response format: 'has_more' is true but 'next_cursor' is missing."
                )

        logger.error(
            "Block pagination for page %s did not finish within %d requests",
            page_id,
            self.max_block_pages,
        )
        raise GatewayError(
            FailureSource.UPSTREAM_UNREACHABLE,
            f"Notion block pagination did not finish within {self.max_block_pages} requests.",
        )

    async def query_database(self, request: DatabaseQueryRequest) -> Dict[str, Any]:
        database_id = _require_id(request.database_id, "database_id")
        return await self.client.query_database(
            database_id,
            request.page_size,
            filter=request.filter,
            sorts=request.sorts,
            start_cursor=request.start_cursor,
        )
