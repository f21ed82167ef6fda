import base64
import json
import re
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List

import pytest

from nomadigma.config import Config
from nomadigma.services.file_service import FileService, UploadedFile
from nomadigma.services.translation_service import TranslationService

PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)

INSERT_RE = re.compile(r"INSERT INTO (\w+) \((.*?)\) VALUES", re.S)
UPDATE_RE = re.compile(r"UPDATE (\w+)\s+SET (.*?)\s+WHERE", re.S)
FROM_RE = re.compile(r"FROM (\w+)")


class FakeConnection:
    """Answers the queries the services issue, over dict rows"""

    def __init__(self, tables: Dict[str, Dict[str, dict]]):
        self.tables = tables
        self.writes: List[str] = []

    def _rows(self, query: str) -> List[dict]:
        rows = list(self.tables[FROM_RE.search(query).group(1)].values())
        if "status = 'PUBLISHED'" in query and "NOT $2" not in query:
            rows = [r for r in rows if r.get('status') == 'PUBLISHED']
        if "active = true" in query:
            rows = [r for r in rows if r.get('active')]
        return rows

    @staticmethod
    def _has_slug(row: dict, slug: str) -> bool:
        return slug in (row.get('slug_en'), row.get('slug_es'))

    async def fetchval(self, query: str, *args):
        if "SELECT EXISTS" in query:
            slug, exclude_id = args[0], args[1]
            return any(
                self._has_slug(row, slug) and row['id'] != exclude_id
                for row in self._rows(query)
            )
        if "COUNT(*)" in query:
            return len(self._rows(query))
        raise AssertionError(f"Unexpected fetchval: {query}")

    async def fetchrow(self, query: str, *args):
        insert = INSERT_RE.search(query)
        if insert:
            table = insert.group(1)
            columns = [c.strip() for c in insert.group(2).split(',')]
            row = dict(zip(columns, args))
            now = datetime.now(timezone.utc)
            row.setdefault('created_at', now)
            row.setdefault('updated_at', now)
            self.tables[table][row['id']] = row
            self.writes.append(f"insert {table}")
            return dict(row)

        update = UPDATE_RE.search(query)
        if update:
            table = update.group(1)
            row = self.tables[table][args[-1]]
            for part in update.group(2).split(','):
                name, _, placeholder = part.strip().partition(' = ')
                if placeholder.startswith('$'):
                    row[name] = args[int(placeholder[1:]) - 1]
            row['updated_at'] = datetime.now(timezone.utc)
            self.writes.append(f"update {table}")
            return dict(row)

        if "WHERE id = $1" in query:
            row = self.tables[FROM_RE.search(query).group(1)].get(args[0])
            return dict(row) if row else None

        if "slug_en = $1 OR slug_es = $1" in query:
            rows = self._rows(query)
            if len(args) > 1 and args[1]:
                rows = [r for r in rows if r.get('status') == 'PUBLISHED']
            for row in rows:
                if self._has_slug(row, args[0]):
                    return dict(row)
            return None

        raise AssertionError(f"Unexpected fetchrow: {query}")

    async def fetch(self, query: str, *args):
        offset, limit = args[-2], args[-1]
        rows = sorted(self._rows(query), key=lambda r: r['created_at'], reverse=True)
        return [dict(r) for r in rows[offset:offset + limit]]


class FakePool:
    def __init__(self, conn: FakeConnection):
        self.conn = conn

    @asynccontextmanager
    async def acquire(self):
        yield self.conn


class FakeDatabase:
    def __init__(self):
        self.tables = {'posts': {}, 'products': {}}
        self.conn = FakeConnection(self.tables)
        self.pool = FakePool(self.conn)

    async def connect(self):
        pass

    async def close(self):
        pass


class FakeTranslationService(TranslationService):
    """Model call replaced by a canned answer"""

    def __init__(self, response: Any = None):
        super().__init__(api_key="test-key", model="test-model", api_url="http://model.test")
        self.response = response
        self.prompts: List[str] = []

    async def _generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if isinstance(self.response, Exception):
            raise self.response
        if isinstance(self.response, dict):
            return json.dumps(self.response)
        return self.response


@pytest.fixture
def translator():
    return FakeTranslationService({
        "title": "Hola",
        "description": "Una descripción",
        "content": "<p>Hola mundo</p>",
        "slug": "hola",
    })


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def file_service(tmp_path):
    return FileService(tmp_path, "http://files.test", "nomadigma")


@pytest.fixture
def png_upload():
    return UploadedFile(filename="cover.png", content_type="image/png", content=PNG_BYTES)


@pytest.fixture
def admin_token(monkeypatch):
    monkeypatch.setattr(Config, "ADMIN_TOKENS", {"secret-token": "user-1", "other-token": "user-2"})
    return "secret-token"
