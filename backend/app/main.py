# backend/app/main.py

"""
バックエンドアプリケーションのエントリーポイント。

主な責務:
- /api/search, /api/get_page, /api/get_page_content, /api/query_database を公開する
- 共有 NotionClient のライフサイクル（起動時に生成、終了時に close）を管理する
- 全レスポンスに CORS ヘッダを付与する（ローカル / 開発ツールからの利用前提）
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.errors import register_exception_handlers
from app.notion.client import NotionClient
from app.notion.config import NotionSettings, get_settings
from app.notion.router import router as notion_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[NotionSettings] = None,
    notion_client: Optional[NotionClient] = None,
) -> FastAPI:
    """
    FastAPI アプリケーションファクトリ。

    - notion_client を渡した場合はそれを使う（テスト用。close は呼び出し側の責任）
    - 渡さない場合は起動時に設定を読み込んでクライアントを生成する
      （NOTION_API_KEY 未設定なら起動失敗）
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned: Optional[NotionClient] = None
        if app.state.notion_client is None:
            owned = NotionClient(settings or get_settings())
            app.state.notion_client = owned
            logger.info("Notion client initialized: %r", owned.settings)
        try:
            yield
        finally:
            if owned is not None:
                await owned.aclose()
                app.state.notion_client = None

    app = FastAPI(title="Notion Gateway", lifespan=lifespan)
    app.state.notion_client = notion_client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    # ルーター登録
    app.include_router(notion_router)

    @app.get("/health", tags=["health"])
    def health_check() -> dict:
        """
        簡易ヘルスチェックエンドポイント。
        モニタリングや動作確認用。
        """
        return {"status": "ok"}

    return app


# uvicorn 実行時のエントリーポイント (uvicorn app.main:app)
app = create_app()
