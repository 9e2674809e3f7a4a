# backend/app/__main__.py

"""
`python -m app` / `notion-gateway` で起動するためのエントリーポイント。

1. .env を読み込む
2. 設定を読み込む（不足・不正なら終了コード 1）
3. ロギングを設定する
4. 必要なら Notion への疎通を確認する（失敗なら終了コード 1）
5. uvicorn でサーバを起動する
"""

import asyncio
import logging
import sys

import uvicorn
from dotenv import load_dotenv

from app.main import create_app
from app.notion.client import NotionClient, NotionClientError
from app.notion.config import get_settings

logger = logging.getLogger("app")


async def _validate_connection(client: NotionClient) -> None:
    try:
        await client.validate_connection()
    finally:
        await client.aclose()


def main() -> int:
    load_dotenv()

    try:
        settings = get_settings()
    except RuntimeError as exc:
        # EnvVarMissingError / EnvVarInvalidError
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger.info("Starting Notion gateway...")

    if settings.validate_on_startup:
        try:
            asyncio.run(_validate_connection(NotionClient(settings)))
        except NotionClientError as exc:
            logger.error("Failed to validate connection to Notion: %s", exc)
            print(
                "Error: could not connect to Notion. Check NOTION_API_KEY and network access.",
                file=sys.stderr,
            )
            return 1
        logger.info("Connection to Notion validated.")

    app = create_app(settings=settings)

    # bind 失敗時は uvicorn がエラーを出して終了コード 1 で抜ける
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
