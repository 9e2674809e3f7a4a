# backend/app/notion/__init__.py

"""
Notion 連携用モジュール群。

- config: Notion API / サーバの設定値
- client: Notion API への非同期 HTTP クライアント
- schemas: リクエスト / レスポンスの Pydantic モデル
- service: ID 検証・ブロックのページネーション集約
- router: /api/* エンドポイント
"""
