"""Shared fixtures: an in-memory stand-in for the users collection."""

import asyncio
import copy
from typing import Any

import pytest
from pymongo.errors import WriteError
from pymongo.results import UpdateResult

from cp_progress.models.platform import Platform
from cp_progress.storage.progress_store import ProgressStore


def _get_path(document: dict, path: str) -> tuple[bool, Any]:
    node: Any = document
    for key in path.split("."):
        if not isinstance(node, dict) or key not in node:
            return False, None
        node = node[key]
    return True, node


def _set_path(document: dict, path: str, value: Any) -> None:
    keys = path.split(".")
    node = document
    for key in keys[:-1]:
        node = node.setdefault(key, {})
    node[keys[-1]] = value


class FakeUsersCollection:
    """Supports the three primitives the store relies on.

    ``find_one`` with an inclusion/``$slice`` projection, ``update_one`` with
    ``$push``/``$each`` and a plain full-document ``find_one``. Each update is
    applied without yielding to the event loop, so it is atomic per document.
    Setting ``gate`` to an unset ``asyncio.Event`` stalls every call.
    """

    def __init__(self):
        self.documents: list[dict] = []
        self.gate: asyncio.Event | None = None
        self.calls: list[str] = []

    def insert(self, document: dict) -> None:
        self.documents.append(copy.deepcopy(document))

    def get(self, email: str) -> dict | None:
        return next((d for d in self.documents if d.get("email") == email), None)

    async def _wait(self, name: str) -> None:
        self.calls.append(name)
        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)

    async def find_one(self, filter: dict, projection: dict | None = None) -> dict | None:
        await self._wait("find_one")
        document = self.get(filter["email"])
        if document is None:
            return None
        if projection is None:
            return copy.deepcopy(document)

        projected: dict = {}
        if projection.get("_id", 1) and "_id" in document:
            projected["_id"] = document["_id"]
        for path, spec in projection.items():
            if path == "_id":
                continue
            found, value = _get_path(document, path)
            if not found:
                continue
            value = copy.deepcopy(value)
            if isinstance(spec, dict) and "$slice" in spec and isinstance(value, list):
                count = spec["$slice"]
                value = value[count:] if count < 0 else value[:count]
            _set_path(projected, path, value)
        return projected

    async def update_one(self, filter: dict, update: dict) -> UpdateResult:
        await self._wait("update_one")
        document = self.get(filter["email"])
        if document is None:
            return UpdateResult({"n": 0, "nModified": 0, "ok": 1.0}, acknowledged=True)
        for path, spec in update["$push"].items():
            found, current = _get_path(document, path)
            if found and not isinstance(current, list):
                kind = "null" if current is None else type(current).__name__
                raise WriteError(
                    f"The field '{path}' must be an array but is of type {kind}", code=2
                )
            if not found:
                current = []
                _set_path(document, path, current)
            current.extend(copy.deepcopy(spec["$each"]))
        return UpdateResult({"n": 1, "nModified": 1, "ok": 1.0}, acknowledged=True)

    async def create_index(self, keys: Any, **kwargs: Any) -> str:
        return "email_1"


def user_document(email: str, **platform_overrides: dict) -> dict:
    """A freshly registered user: every platform present and empty."""
    platform_data = {
        p.value: {
            "handle": "",
            "totalSolved": 0,
            "ranking": 0.0,
            "contests": [],
            "submissions": [],
        }
        for p in Platform
    }
    platform_data.update(platform_overrides)
    return {
        "_id": f"id-{email}",
        "email": email,
        "firstName": "Ada",
        "lastName": "Lovelace",
        "password": "hashed",
        "platformData": platform_data,
    }


@pytest.fixture
def users():
    collection = FakeUsersCollection()
    collection.insert(user_document("a@x.com"))
    return collection


@pytest.fixture
def store(users):
    return ProgressStore(users, timeout_seconds=1.0)


@pytest.fixture
def add_user(users):
    """Insert another registered user, optionally with pre-filled platforms."""

    def _add(email: str, **platform_overrides: dict) -> dict:
        document = user_document(email, **platform_overrides)
        users.insert(document)
        return document

    return _add
