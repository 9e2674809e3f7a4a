# backend/app/notion/router.py

"""
Notion ゲートウェイの FastAPI ルーター定義。

- POST /api/search
- GET  /api/get_page/{page_id}
- GET  /api/get_page_content/{page_id}
- POST /api/query_database
"""

import logging
from typing import Any, Awaitable

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.errors import FailureSource, GatewayError
from app.notion.client import NotionClientError
from app.notion.schemas import DatabaseQueryRequest, Operation, PageContentResponse, SearchRequest
from app.notion.service import NotionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["notion"])


def get_notion_service(request: Request) -> NotionService:
    """
    app.state に保持している共有 NotionClient からサービスを組み立てる。

    テストでは FastAPI の dependency_overrides でも差し替え可能。
    """
    client = getattr(request.app.state, "notion_client", None)
    if client is None:
        raise GatewayError(FailureSource.INTERNAL, "Notion client is not initialized.")
    return NotionService(client)


async def _run(operation: Operation, call: Awaitable[Any]) -> Any:
    """
    サービス呼び出しを実行する。

    - 型付きの失敗 (GatewayError / NotionClientError) はそのまま例外ハンドラへ
    - 想定外の例外はログに残して internal_error に変換する
    """
    try:
        return await call
    except (GatewayError, NotionClientError):
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected error in %s", operation.value)
        raise GatewayError(FailureSource.INTERNAL, f"Unexpected error in {operation.value}.") from exc


@router.post(
    "/search",
    name=Operation.SEARCH.value,
    summary="Notion を検索",
    description="query と limit を Notion の search にそのまま転送し、結果を返す。",
)
async def search(
    body: SearchRequest,
    service: NotionService = Depends(get_notion_service),
) -> JSONResponse:
    result = await _run(Operation.SEARCH, service.search(body))
    return JSONResponse(content=result)


@router.get(
    "/get_page/{page_id:path}",
    name=Operation.GET_PAGE.value,
    summary="ページのメタデータを取得",
)
async def get_page(
    page_id: str,
    service: NotionService = Depends(get_notion_service),
) -> JSONResponse:
    """
    Notion のページオブジェクトをそのまま返す。
    Notion が 404 を返した場合は not_found になる。
    """
    result = await _run(Operation.GET_PAGE, service.get_page(page_id))
    return JSONResponse(content=result)


@router.get(
    "/get_page_content/{page_id:path}",
    name=Operation.GET_PAGE_CONTENT.value,
    response_model=PageContentResponse,
    summary="ページ本文のブロックを全件取得",
    description="Notion のブロック一覧をカーソルで最後まで辿り、1 つのレスポンスにまとめて返す。",
)
async def get_page_content(
    page_id: str,
    service: NotionService = Depends(get_notion_service),
) -> PageContentResponse:
    return await _run(Operation.GET_PAGE_CONTENT, service.get_page_content(page_id))


@router.post(
    "/query_database",
    name=Operation.QUERY_DATABASE.value,
    summary="データベースを query",
    description="Notion の database query を 1 回だけ呼び出し、結果をそのまま返す（集約はしない）。",
)
async def query_database(
    body: DatabaseQueryRequest,
    service: NotionService = Depends(get_notion_service),
) -> JSONResponse:
    result = await _run(Operation.QUERY_DATABASE, service.query_database(body))
    return JSONResponse(content=result)
