# backend/app/notion/config.py

"""
Notion ゲートウェイに必要な設定値をまとめるモジュール。
"""

from dataclasses import dataclass
from functools import lru_cache

from app.utils.config import EnvVarInvalidError, get_env, get_env_bool, get_env_float, get_env_int

DEFAULT_API_BASE_URL = "https://api.notion.com/v1"
DEFAULT_API_VERSION = "2022-06-28"
DEFAULT_PORT = 3004

_LOG_LEVELS = {"critical", "error", "warning", "info", "debug"}


@dataclass(frozen=True)
class NotionSettings:
    """Notion API 呼び出しと HTTP サーバ用の設定値コンテナ。"""

    api_key: str
    api_base_url: str = DEFAULT_API_BASE_URL
    api_version: str = DEFAULT_API_VERSION
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    log_level: str = "info"
    timeout_seconds: float = 10.0
    max_block_pages: int = 100
    validate_on_startup: bool = True

    def __repr__(self) -> str:
        # api_key はログに出さない
        return (
            f"NotionSettings(api_base_url={self.api_base_url!r}, "
            f"api_version={self.api_version!r}, host={self.host!r}, port={self.port}, "
            f"log_level={self.log_level!r}, timeout_seconds={self.timeout_seconds}, "
            f"max_block_pages={self.max_block_pages}, "
            f"validate_on_startup={self.validate_on_startup})"
        )


@lru_cache()
def get_settings() -> NotionSettings:
    """
    環境変数から設定を読み込む。

    必須:
      - NOTION_API_KEY

    任意:
      - MCP_PORT                   (デフォルト: 3004)
      - MCP_HOST                   (デフォルト: 127.0.0.1)
      - LOG_LEVEL                  (デフォルト: info)
      - NOTION_API_BASE_URL        (デフォルト: https://api.notion.com/v1)
      - NOTION_API_VERSION         (デフォルト: 2022-06-28)
      - NOTION_TIMEOUT_SECONDS     (デフォルト: 10)
      - NOTION_MAX_BLOCK_PAGES     (デフォルト: 100)
      - NOTION_VALIDATE_ON_STARTUP (デフォルト: true)
    """
    api_key = get_env("NOTION_API_KEY")

    port = get_env_int("MCP_PORT", default=DEFAULT_PORT)
    if not 0 < port < 65536:
        raise EnvVarInvalidError("MCP_PORT", str(port), "port number 1-65535")

    log_level = get_env("LOG_LEVEL", default="info", required=False).lower()
    if log_level not in _LOG_LEVELS:
        raise EnvVarInvalidError("LOG_LEVEL", log_level, "one of " + ", ".join(sorted(_LOG_LEVELS)))

    timeout_seconds = get_env_float("NOTION_TIMEOUT_SECONDS", default=10.0)
    if timeout_seconds <= 0:
        raise EnvVarInvalidError("NOTION_TIMEOUT_SECONDS", str(timeout_seconds), "positive number")

    max_block_pages = get_env_int("NOTION_MAX_BLOCK_PAGES", default=100)
    if max_block_pages <= 0:
        raise EnvVarInvalidError("NOTION_MAX_BLOCK_PAGES", str(max_block_pages), "positive integer")

    return NotionSettings(
        api_key=api_key,
        api_base_url=get_env(
            "NOTION_API_BASE_URL",
            default=DEFAULT_API_BASE_URL,
            required=False,
        ).rstrip("/"),
        api_version=get_env(
            "NOTION_API_VERSION",
            default=DEFAULT_API_VERSION,
            required=False,
        ),
        host=get_env("MCP_HOST", default="127.0.0.1", required=False),
        port=port,
        log_level=log_level,
        timeout_seconds=timeout_seconds,
        max_block_pages=max_block_pages,
        validate_on_startup=get_env_bool("NOTION_VALIDATE_ON_STARTUP", default=True),
    )
