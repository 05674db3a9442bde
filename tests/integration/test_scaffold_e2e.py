"""Integration tests for config-file-to-project scaffolding.

These tests drive the real CLI from YAML files on disk, then load the
generated sources and run them: the echo and worker-pool servers over real
loopback sockets, the HTTP service through FastAPI's TestClient.

No external services (databases, package indexes) are required.
"""

from __future__ import annotations

import asyncio
import tomllib
from pathlib import Path
from typing import Any

import pytest

from netgen.cli import main


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _scaffold(write_yaml, command: str, raw: dict[str, Any], out_dir: Path) -> Path:
    """Write *raw* as YAML and run ``netgen <command>`` on it."""
    config = write_yaml(raw, f"{command}.yaml")
    main([command, "--config", str(config), "--out-dir", str(out_dir)])
    return out_dir


async def _roundtrip(server: asyncio.AbstractServer, payload: bytes, reply_len: int) -> bytes:
    host, port = server.sockets[0].getsockname()[:2]
    reader, writer = await asyncio.open_connection(host, port)
    try:
        writer.write(payload)
        await writer.drain()
        return await asyncio.wait_for(reader.readexactly(reply_len), timeout=5)
    finally:
        writer.close()
        await writer.wait_closed()


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

@pytest.mark.integration
class TestScaffoldedProjects:
    """Generated projects are well-formed and actually serve traffic."""

    async def test_echo_server_round_trip(
        self, write_yaml, load_module, echo_raw: dict[str, Any], tmp_path: Path
    ) -> None:
        out = _scaffold(write_yaml, "tcp-echo", echo_raw, tmp_path / "t1")
        module = load_module((out / "main.py").read_text(encoding="utf-8"), "main")

        server = await asyncio.start_server(module.handle_connection, "127.0.0.1", 0)
        async with server:
            reply = await _roundtrip(server, b"hello\nworld\n", len(b"hello\nworld\n"))
        assert reply == b"hello\nworld\n"

    async def test_length_prefixed_echo(
        self, write_yaml, load_module, tmp_path: Path
    ) -> None:
        raw = {
            "project_name": "lp",
            "port": 4001,
            "read_mode": {"type": "length_prefixed", "len_bytes": 2, "max_len": 1024},
        }
        out = _scaffold(write_yaml, "tcp-echo", raw, tmp_path / "lp")
        module = load_module((out / "main.py").read_text(encoding="utf-8"), "main")

        frame = module.encode_frame(b"payload")
        server = await asyncio.start_server(module.handle_connection, "127.0.0.1", 0)
        async with server:
            assert await _roundtrip(server, frame, len(frame)) == frame

    async def test_oversized_line_closes_open_connection(
        self, write_yaml, load_module, tmp_path: Path
    ) -> None:
        raw = {
            "project_name": "bounded",
            "port": 4002,
            "read_mode": {"type": "lines", "max_line_len": 8},
        }
        out = _scaffold(write_yaml, "tcp-echo", raw, tmp_path / "bounded")
        module = load_module((out / "main.py").read_text(encoding="utf-8"), "main")

        server = await asyncio.start_server(
            module.handle_connection, "127.0.0.1", 0, limit=module.READER_LIMIT
        )
        async with server:
            host, port = server.sockets[0].getsockname()[:2]
            reader, writer = await asyncio.open_connection(host, port)
            # No newline, and the client keeps its side open.
            writer.write(b"x" * 20)
            await writer.drain()
            assert await asyncio.wait_for(reader.read(), timeout=5) == b""
            writer.close()
            await writer.wait_closed()

    async def test_worker_pool_serves_replies(
        self, write_yaml, load_module, worker_raw: dict[str, Any], tmp_path: Path
    ) -> None:
        raw = {**worker_raw, "read_mode": {"type": "fixed_size", "frame_size": 4}}
        out = _scaffold(write_yaml, "tcp-worker", raw, tmp_path / "t2")
        module = load_module((out / "main.py").read_text(encoding="utf-8"), "main")

        async def reverse(worker_id: int, event) -> bytes:
            return event.frame[::-1]

        module.process_frame = reverse
        queue = asyncio.Queue(maxsize=module.EVENT_BUFFER)
        workers = module.start_workers(queue)
        try:
            server = await asyncio.start_server(
                lambda r, w: module.handle_connection(r, w, queue), "127.0.0.1", 0
            )
            async with server:
                host, port = server.sockets[0].getsockname()[:2]
                reader, writer = await asyncio.open_connection(host, port)
                writer.write(b"abcd")
                await writer.drain()
                reply = await asyncio.wait_for(reader.readexactly(4), timeout=5)
                writer.close()
                await writer.wait_closed()
        finally:
            for task in workers:
                task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        assert reply == b"dcba"

    def test_http_service(
        self, write_yaml, load_module, http_raw: dict[str, Any], tmp_path: Path
    ) -> None:
        from fastapi.testclient import TestClient

        out = _scaffold(write_yaml, "http", {**http_raw, "tracing": False}, tmp_path / "api")
        module = load_module((out / "main.py").read_text(encoding="utf-8"), "main")

        with TestClient(module.app) as client:
            response = client.get("/health")
        assert response.status_code == 200
        assert response.text == "OK"

    def test_manifests_are_valid_toml(
        self, write_yaml, http_db_raw: dict[str, Any], tmp_path: Path
    ) -> None:
        raw = {**http_db_raw, "github_actions": True}
        out = _scaffold(write_yaml, "http", raw, tmp_path / "api")

        manifest = tomllib.loads((out / "pyproject.toml").read_text(encoding="utf-8"))
        assert manifest["project"]["name"] == "api"
        assert manifest["project"]["scripts"] == {"api": "main:run"}
        assert (out / ".github" / "workflows" / "ci.yml").is_file()
        for name in manifest["tool"]["setuptools"]["py-modules"]:
            source = (out / f"{name}.py").read_text(encoding="utf-8")
            compile(source, f"{name}.py", "exec")
