# tests/test_program.py
"""ProgramData lifecycle, cache-first bootstrap and the lint pipeline."""

import io
import logging
import os

import pytest

from gdblint import gdb as gdb_module
from gdblint.cache import CACHE_HEADER, CacheFile
from gdblint.errors import CollaboratorError, ResourceError
from gdblint.gdb import GdbCollaborator
from gdblint.program import ProgramData, bootstrap, clear_cache, lint, list_architectures
from gdblint.symtab import SymbolKind

from conftest import FakeGdb


class BrokenGdb(FakeGdb):
    def architectures(self):
        raise CollaboratorError("gdb not found", "gdb -batch")


class ForbiddenGdb(FakeGdb):
    def architectures(self):
        raise AssertionError("gdb must not be queried on a cache hit")


@pytest.fixture
def cached_config(config):
    config.use_cache = True
    return config


class TestProgramData:

    def test_close_releases_everything(self, commands):
        data = ProgramData()
        data.trie = commands
        data.defs.insert("x", 1)
        data.refs.insert("y", 2)
        data.close()
        assert data.closed
        assert len(data.defs) == 0
        assert len(data.refs) == 0
        assert len(data.trie) == 0

    def test_close_is_idempotent(self):
        data = ProgramData()
        data.close()
        data.close()
        assert data.closed

    def test_context_manager_closes_on_error(self):
        with pytest.raises(RuntimeError):
            with ProgramData() as data:
                data.defs.insert("x", 1)
                raise RuntimeError("boom")
        assert data.closed
        assert len(data.defs) == 0

    def test_duplicate_flag_reaches_tables(self):
        with ProgramData(check_duplicates=True) as data:
            assert data.defs.check_duplicates
            assert data.refs.check_duplicates


class TestBootstrap:

    def test_cold_run_queries_gdb_and_writes_cache(self, cached_config, fake_gdb):
        with ProgramData() as data:
            assert bootstrap(data, cached_config, fake_gdb) is False
            assert data.trie.contains("break")
            assert data.defs.find("rip", SymbolKind.VARIABLE) is not None
            assert data.defs.find("_probe_arg3", SymbolKind.VARIABLE) is not None

        path = CacheFile(cached_config.cache_dir).path
        assert path.read_text(encoding="utf-8").startswith(CACHE_HEADER)
        assert "architectures" in fake_gdb.calls

    def test_warm_run_uses_cache(self, cached_config, fake_gdb):
        with ProgramData() as data:
            bootstrap(data, cached_config, fake_gdb)

        with ProgramData() as data:
            assert bootstrap(data, cached_config, ForbiddenGdb()) is True
            assert data.trie.contains("break")
            assert data.trie.contains("silent")
            symbol = data.defs.find("bpnum", SymbolKind.VARIABLE)
            assert symbol is not None and symbol.is_builtin

    def test_cache_is_per_arch(self, cached_config, fake_gdb):
        with ProgramData() as data:
            bootstrap(data, cached_config, fake_gdb)
        cached_config.arch = "aarch64"
        other = FakeGdb()
        with ProgramData() as data:
            assert bootstrap(data, cached_config, other) is False
        assert other.calls

    def test_damaged_cache_is_rebuilt(self, cached_config, fake_gdb):
        path = CacheFile(cached_config.cache_dir).path
        path.parent.mkdir(parents=True)
        path.write_text("defs\n", encoding="utf-8")

        with ProgramData() as data:
            assert bootstrap(data, cached_config, fake_gdb) is False
            assert data.trie.contains("break")
        assert len(path.read_text(encoding="utf-8")) > len("defs\n")

    def test_truncated_trie_is_rebuilt(self, cached_config, fake_gdb):
        with ProgramData() as data:
            bootstrap(data, cached_config, fake_gdb)
        path = CacheFile(cached_config.cache_dir).path
        text = path.read_text(encoding="utf-8")
        path.write_text(text[:-3], encoding="utf-8")

        again = FakeGdb()
        with ProgramData() as data:
            assert bootstrap(data, cached_config, again) is False
            assert data.trie.contains("break")
        assert "architectures" in again.calls

    def test_gdb_failure_is_not_fatal(self, cached_config, caplog):
        with caplog.at_level(logging.WARNING, logger="gdblint"):
            with ProgramData() as data:
                assert bootstrap(data, cached_config, BrokenGdb()) is False
                assert len(data.trie) == 0
        assert "could not load GDB data" in caplog.text
        assert not CacheFile(cached_config.cache_dir).exists()

    def test_undecodable_gdb_output_is_not_fatal(self, config, monkeypatch, caplog):
        def garbled(argv, **kwargs):
            raise UnicodeDecodeError("utf-8", b"break\xff", 5, 6, "invalid start byte")

        monkeypatch.setattr(gdb_module.subprocess, "run", garbled)
        with caplog.at_level(logging.WARNING, logger="gdblint"):
            with ProgramData() as data:
                assert bootstrap(data, config, GdbCollaborator()) is False
                assert len(data.trie) == 0
        assert "could not load GDB data" in caplog.text

    def test_no_cache_leaves_disk_alone(self, config, fake_gdb):
        with ProgramData() as data:
            bootstrap(data, config, fake_gdb)
        assert not config.cache_dir.exists()


class TestLint:

    def test_file(self, tmp_path, config, fake_gdb):
        script = tmp_path / "demo.gdb"
        script.write_text("define greet\nend\nfrob $nope\n", encoding="utf-8")
        config.file = str(script)

        result = lint(config, collaborator=fake_gdb)
        assert result.path == os.path.realpath(str(script))
        assert result.width == 2
        assert sorted(f.name for f in result.findings) == ["frob", "greet", "nope"]
        assert all(f.file == "demo.gdb" for f in result.findings)

    def test_stream(self, config, fake_gdb):
        result = lint(config, stream=io.StringIO("print $_siginfo\n"), collaborator=fake_gdb)
        assert result.findings == []
        assert result.count == 0

    def test_missing_file(self, tmp_path, config, fake_gdb):
        config.file = str(tmp_path / "absent.gdb")
        with pytest.raises(ResourceError):
            lint(config, collaborator=fake_gdb)

    def test_list_architectures(self, config, fake_gdb):
        assert list_architectures(config, fake_gdb) == ["i386", "i386:x86-64", "aarch64"]

    def test_clear_cache(self, cached_config, fake_gdb):
        with ProgramData() as data:
            bootstrap(data, cached_config, fake_gdb)
        assert clear_cache(cached_config) == 1
        assert not CacheFile(cached_config.cache_dir).exists()
