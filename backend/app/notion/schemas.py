# backend/app/notion/schemas.py

"""
ゲートウェイのリクエスト / レスポンスのスキーマ定義。

Notion のレスポンス本体は不透明な JSON としてそのまま返すため、
ここで定義するのは入力側と、ゲートウェイ自身が組み立てる形だけ。
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, conint

PositiveInt = conint(gt=0, strict=True)


class Operation(str, Enum):
    """ゲートウェイが公開する操作の閉じた集合。ルート名としても使う。"""

    SEARCH = "search"
    GET_PAGE = "get_page"
    GET_PAGE_CONTENT = "get_page_content"
    QUERY_DATABASE = "query_database"


class SearchRequest(BaseModel):
    """
    POST /api/search のリクエストボディ。

    query が空文字列の場合は絞り込みなしの一覧になる。
    """

    query: str = Field(..., description="検索文字列（空文字列 = 絞り込みなし）", strict=True)
    limit: Optional[PositiveInt] = Field(
        None,
        description="最大件数（正の整数）。省略時は Notion のデフォルト",
    )
    start_cursor: Optional[str] = Field(None, description="前回レスポンスの next_cursor")
    filter: Optional[Dict[str, Any]] = Field(None, description="Notion search の filter をそのまま渡す")
    sort: Optional[Dict[str, Any]] = Field(None, description="Notion search の sort をそのまま渡す")


class DatabaseQueryRequest(BaseModel):
    """POST /api/query_database のリクエストボディ。"""

    database_id: str = Field(..., min_length=1, description="Notion データベース ID", strict=True)
    page_size: Optional[PositiveInt] = Field(
        None,
        description="1 ページの件数（正の整数）。上限は Notion 側で検証される",
    )
    filter: Optional[Dict[str, Any]] = None
    sorts: Optional[List[Dict[str, Any]]] = None
    start_cursor: Optional[str] = None


class PageContentResponse(BaseModel):
    """
    GET /api/get_page_content/{page_id} のレスポンス。

    blocks は全ページ分を受信順に連結したもの。
    """

    blocks: List[Dict[str, Any]]
    text: str = Field("", description="テキストを持つブロックから抽出したプレーンテキスト")
