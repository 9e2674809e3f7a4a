# backend/app/errors.py

"""
エラー種別と、失敗 → (HTTP ステータス, エラーエンベロープ) への変換。

ハンドラはエンベロープを直接組み立てず、例外を投げるだけにする。
JSON への変換はここで登録する例外ハンドラが一括で行う。
"""

import logging
from enum import Enum
from typing import Optional, Tuple

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.notion.client import (
    NotionClientError,
    NotionConnectionError,
    NotionDecodeError,
    NotionHTTPError,
)

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    INVALID_REQUEST = "invalid_request"
    NOT_FOUND = "not_found"
    UPSTREAM_ERROR = "upstream_error"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    INTERNAL_ERROR = "internal_error"


class FailureSource(str, Enum):
    """失敗の発生源。map_failure の入力になる閉じた集合。"""

    VALIDATION = "validation"
    UNMATCHED_ROUTE = "unmatched_route"
    UPSTREAM_STATUS = "upstream_status"
    UPSTREAM_UNREACHABLE = "upstream_unreachable"
    DECODE = "decode"
    INTERNAL = "internal"


class ErrorDetail(BaseModel):
    kind: ErrorKind
    message: str
    status: Optional[int] = Field(None, description="Notion が返した HTTP ステータス（ある場合のみ）")


class ErrorEnvelope(BaseModel):
    """全エラーレスポンス共通の JSON 形状: {"error": {...}}"""

    error: ErrorDetail

    def to_content(self) -> dict:
        detail = {"kind": self.error.kind.value, "message": self.error.message}
        if self.error.status is not None:
            detail["status"] = self.error.status
        return {"error": detail}


class GatewayError(Exception):
    """
    ローカルで検出した失敗（バリデーション違反など）を表す例外。

    発生源だけを持ち、ステータスコードの決定は map_failure に任せる。
    """

    def __init__(self, source: FailureSource, message: str) -> None:
        super().__init__(message)
        self.source = source
        self.message = message


def map_failure(
    source: FailureSource,
    message: str,
    upstream_status: Optional[int] = None,
) -> Tuple[int, ErrorEnvelope]:
    """
    失敗の発生源と詳細から、返すべき HTTP ステータスとエンベロープを決める純粋関数。

    | 発生源                          | ステータス       | kind                 |
    |---------------------------------|------------------|----------------------|
    | ローカルバリデーション          | 400              | invalid_request      |
    | ルート不一致                    | 404              | not_found            |
    | Notion 404                      | 404              | not_found            |
    | Notion その他 4xx               | Notion のまま    | upstream_error       |
    | Notion 5xx / 接続失敗 / timeout | 502              | upstream_unavailable |
    | レスポンスのデコード失敗        | 500              | internal_error       |
    """
    if source is FailureSource.VALIDATION:
        code, kind = status.HTTP_400_BAD_REQUEST, ErrorKind.INVALID_REQUEST
    elif source is FailureSource.UNMATCHED_ROUTE:
        code, kind = status.HTTP_404_NOT_FOUND, ErrorKind.NOT_FOUND
    elif source is FailureSource.UPSTREAM_STATUS:
        if upstream_status is None:
            raise ValueError("upstream_status is required for FailureSource.UPSTREAM_STATUS")
        if upstream_status == 404:
            code, kind = status.HTTP_404_NOT_FOUND, ErrorKind.NOT_FOUND
        elif 400 <= upstream_status < 500:
            code, kind = upstream_status, ErrorKind.UPSTREAM_ERROR
        else:
            code, kind = status.HTTP_502_BAD_GATEWAY, ErrorKind.UPSTREAM_UNAVAILABLE
    elif source is FailureSource.UPSTREAM_UNREACHABLE:
        code, kind = status.HTTP_502_BAD_GATEWAY, ErrorKind.UPSTREAM_UNAVAILABLE
    else:
        code, kind = status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorKind.INTERNAL_ERROR

    envelope = ErrorEnvelope(error=ErrorDetail(kind=kind, message=message, status=upstream_status))
    return code, envelope


def map_exception(exc: Exception) -> Tuple[int, ErrorEnvelope]:
    """例外を発生源に分類して map_failure に渡す。"""
    if isinstance(exc, GatewayError):
        return map_failure(exc.source, exc.message)
    if isinstance(exc, NotionHTTPError):
        return map_failure(FailureSource.UPSTREAM_STATUS, str(exc), upstream_status=exc.status_code)
    if isinstance(exc, NotionConnectionError):
        return map_failure(FailureSource.UPSTREAM_UNREACHABLE, str(exc))
    if isinstance(exc, NotionDecodeError):
        return map_failure(FailureSource.DECODE, str(exc))
    return map_failure(FailureSource.INTERNAL, "Internal server error.")


def _envelope_response(code: int, envelope: ErrorEnvelope) -> JSONResponse:
    return JSONResponse(status_code=code, content=envelope.to_content())


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "Invalid request: " + "; ".join(parts) if parts else "Invalid request."


async def _handle_known_error(request: Request, exc: Exception) -> JSONResponse:
    code, envelope = map_exception(exc)
    logger.info(
        "%s %s -> %s %s",
        request.method,
        request.url.path,
        code,
        envelope.error.kind.value,
    )
    return _envelope_response(code, envelope)


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    code, envelope = map_failure(FailureSource.VALIDATION, _format_validation_errors(exc))
    logger.info("%s %s -> %s invalid_request", request.method, request.url.path, code)
    return _envelope_response(code, envelope)


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # 405 (既知パスでメソッド違い) もルート不一致として扱う
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        code, envelope = map_failure(
            FailureSource.UNMATCHED_ROUTE,
            f"No route for {request.method} {request.url.path}",
        )
    elif exc.status_code < 500:
        # 413 などのステータスはそのまま返し、kind だけ invalid_request にそろえる
        _, envelope = map_failure(FailureSource.VALIDATION, str(exc.detail))
        code = exc.status_code
    else:
        code, envelope = map_failure(FailureSource.INTERNAL, str(exc.detail))
    return _envelope_response(code, envelope)


def register_exception_handlers(app: FastAPI) -> None:
    """FastAPI アプリにエラーエンベロープ用の例外ハンドラを登録する。"""
    app.add_exception_handler(GatewayError, _handle_known_error)
    app.add_exception_handler(NotionClientError, _handle_known_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
