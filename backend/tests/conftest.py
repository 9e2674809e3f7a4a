# backend/tests/conftest.py
"""
Pytest configuration for Notion gateway backend tests.

- Ensures that the project root (backend/) is added to sys.path
  so that `import app.*` works correctly in tests.
- Ensures required environment variables for tests are set
  with safe dummy values (e.g., NOTION_API_KEY).
- Provides helpers to build a NotionClient backed by httpx.MockTransport,
  so no test ever talks to the real Notion API.
"""

import json
import os
import sys
from pathlib import Path
from typing import Callable, List

import httpx
import pytest


def _ensure_project_root_in_sys_path() -> None:
    # This file is located at: backend/tests/conftest.py
    # parents[1] -> backend/
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)

    if project_root_str not in sys.path:
        # Insert at the beginning so it has priority over site-packages, etc.
        sys.path.insert(0, project_root_str)


def _ensure_test_env_vars() -> None:
    """
    Set dummy environment variables required for tests.

    These values are only for local testing and do NOT contain real secrets.
    In real environments, proper values should be provided via .env or system env.
    """
    os.environ.setdefault("NOTION_API_KEY", "ntn_dummy-notion-api-key-for-tests")


_ensure_project_root_in_sys_path()
_ensure_test_env_vars()


from app.notion.client import NotionClient  # noqa: E402
from app.notion.config import NotionSettings  # noqa: E402


class RecordingTransport(httpx.MockTransport):
    """
    MockTransport that remembers every request it served.
    """

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: List[httpx.Request] = []

        def _recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_recording_handler)

    def request_json(self, index: int) -> dict:
        return json.loads(self.requests[index].content or b"{}")


@pytest.fixture
def test_settings() -> NotionSettings:
    return NotionSettings(
        api_key="ntn_test-key",
        api_base_url="https://notion.test/v1",
        timeout_seconds=2.0,
        max_block_pages=5,
        validate_on_startup=False,
    )


@pytest.fixture
def make_client(test_settings):
    """
    handler から NotionClient と RecordingTransport の組を作るファクトリ。
    """

    def _make(handler: Callable[[httpx.Request], httpx.Response]):
        transport = RecordingTransport(handler)
        client = NotionClient(test_settings, transport=transport)
        return client, transport

    return _make
