import asyncio
import sqlite3

import pytest

from vecdb import connection
from vecdb.connection import ConnectionManager
from vecdb.errors import OpenError


def test_open_creates_collection_table(tmp_path):
    path = tmp_path / "v.sqlite3"
    mgr = ConnectionManager("notes", 4, path=str(path))
    asyncio.run(mgr.get())
    asyncio.run(mgr.reset())

    conn = sqlite3.connect(path)
    tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    conn.close()
    assert "notes_dim4" in tables


def test_get_opens_once_for_concurrent_callers(tmp_path, monkeypatch):
    calls = []
    real_open = connection.open_database

    async def counting_open(*args, **kwargs):
        calls.append(args[0])
        await asyncio.sleep(0.01)
        return await real_open(*args, **kwargs)

    monkeypatch.setattr(connection, "open_database", counting_open)
    mgr = ConnectionManager("notes", 4, path=str(tmp_path / "v.sqlite3"))

    async def run():
        handles = await asyncio.gather(*(mgr.get() for _ in range(5)))
        again = await mgr.get()
        await mgr.reset()
        return handles, again

    handles, again = asyncio.run(run())
    assert len(calls) == 1
    assert all(h is handles[0] for h in handles)
    assert again is handles[0]


def test_open_error_is_replayed_without_reopening(tmp_path, monkeypatch):
    calls = []

    async def failing_open(*args, **kwargs):
        calls.append(args[0])
        await asyncio.sleep(0)
        raise OpenError("engine unavailable")

    monkeypatch.setattr(connection, "open_database", failing_open)
    mgr = ConnectionManager("notes", 4, path=str(tmp_path / "v.sqlite3"))

    async def run():
        pending = await asyncio.gather(mgr.get(), mgr.get(), return_exceptions=True)
        with pytest.raises(OpenError):
            await mgr.get()
        return pending

    pending = asyncio.run(run())
    assert all(isinstance(err, OpenError) for err in pending)
    assert len(calls) == 1


def test_cancelled_caller_does_not_cancel_open(tmp_path, monkeypatch):
    real_open = connection.open_database
    gate = {}

    async def slow_open(*args, **kwargs):
        await gate["event"].wait()
        return await real_open(*args, **kwargs)

    monkeypatch.setattr(connection, "open_database", slow_open)
    mgr = ConnectionManager("notes", 4, path=str(tmp_path / "v.sqlite3"))

    async def run():
        gate["event"] = asyncio.Event()
        first = asyncio.create_task(mgr.get())
        second = asyncio.create_task(mgr.get())
        await asyncio.sleep(0)
        first.cancel()
        gate["event"].set()
        db = await second
        await mgr.reset()
        return first, db

    first, db = asyncio.run(run())
    assert first.cancelled()
    assert db.closed


def test_reset_allows_reopen(tmp_path):
    mgr = ConnectionManager("notes", 4, path=str(tmp_path / "v.sqlite3"))

    async def run():
        first = await mgr.get()
        await mgr.reset()
        second = await mgr.get()
        await mgr.reset()
        return first, second

    first, second = asyncio.run(run())
    assert first is not second
    assert first.closed and second.closed


def test_default_path_comes_from_config(monkeypatch, tmp_path):
    monkeypatch.setattr(connection.storage_cfg, "DB_DIR", str(tmp_path))
    monkeypatch.setattr(connection.storage_cfg, "DB_NAME", "VectorDB")
    mgr = ConnectionManager("notes", 4)
    assert mgr.path == str(tmp_path / "VectorDB.sqlite3")
