# tests/test_cache.py
"""Cache records, the whole-cache round trip and the cache file handle."""

import io

import pytest

from gdblint import cache
from gdblint.cache import (
    CACHE_HEADER,
    CACHE_RECORD_GRAMMAR,
    CacheFile,
    default_cache_dir,
    load_definitions,
    parse_record,
    store_definitions,
)
from gdblint.errors import CacheFormatError
from gdblint.program import ProgramData
from gdblint.symtab import SymbolKind, SymbolTable, bucket_index


def chains(table):
    return [
        (index, [(s.name, s.kind, s.first_line) for s in chain])
        for index, chain in table.buckets()
    ]


class TestRecordGrammar:

    def test_grammar_compiles(self):
        assert "record" in CACHE_RECORD_GRAMMAR

    def test_parse_record(self):
        index = bucket_index("greet")
        assert parse_record(f"{index},greet,1,4\n") == (index, "greet", SymbolKind.FUNCTION, 4)

    @pytest.mark.parametrize("text", [
        "1,a,0\n",
        "x,a,0,0\n",
        "1,a,0,0",
        "b t    \n",
        "",
    ])
    def test_malformed(self, text):
        with pytest.raises(CacheFormatError):
            parse_record(text)

    def test_unknown_kind(self):
        with pytest.raises(CacheFormatError):
            parse_record(f"{bucket_index('a')},a,7,0\n")

    def test_wrong_bucket(self):
        wrong = (bucket_index("a") + 1) % 1024
        with pytest.raises(CacheFormatError):
            parse_record(f"{wrong},a,0,0\n")


class TestDefinitionsSection:

    def test_store_format(self):
        table = SymbolTable()
        table.insert("bpnum", 0, SymbolKind.VARIABLE)
        sink = io.StringIO()
        assert store_definitions(table, sink) == 1
        assert sink.getvalue() == f"defs\n{bucket_index('bpnum')},bpnum,0,0\n"

    def test_round_trip_preserves_chain_order(self):
        table = SymbolTable()
        table.insert("x", 1, SymbolKind.VARIABLE)
        table.insert("x", 2, SymbolKind.VARIABLE)
        table.insert("x", 3, SymbolKind.FUNCTION)
        for name in ("alpha", "beta", "_exitcode", "rip"):
            table.insert(name, 0, SymbolKind.VARIABLE)

        sink = io.StringIO()
        written = store_definitions(table, sink)

        copy = SymbolTable()
        assert load_definitions(copy, io.StringIO(sink.getvalue())) == written == len(table)
        assert chains(copy) == chains(table)

    def test_every_stored_symbol_is_found_again(self):
        table = SymbolTable()
        for i, name in enumerate(("a", "bb", "c-c", "d_d", "E1")):
            table.insert(name, i, SymbolKind(i % 2))
        sink = io.StringIO()
        store_definitions(table, sink)
        copy = SymbolTable()
        load_definitions(copy, io.StringIO(sink.getvalue()))
        for symbol in table:
            found = copy.find(symbol.name, symbol.kind)
            assert found is not None
            assert found.first_line == symbol.first_line

    def test_filter(self):
        table = SymbolTable()
        table.insert("builtin", 0)
        table.insert("mine", 3)
        sink = io.StringIO()
        assert store_definitions(table, sink, where=lambda s: s.is_builtin) == 1
        assert "mine" not in sink.getvalue()

    def test_unrepresentable_name_is_skipped(self):
        table = SymbolTable()
        table.insert("a,b", 0)
        sink = io.StringIO()
        assert store_definitions(table, sink) == 0
        assert sink.getvalue() == CACHE_HEADER

    def test_missing_header(self):
        source = io.StringIO("refs\n1,a,0,0\n")
        assert load_definitions(SymbolTable(), source) == 0
        assert source.read() == "refs\n1,a,0,0\n"

    def test_stops_at_malformed_record_and_rewinds(self):
        good = f"{bucket_index('a')},a,0,0\n"
        source = io.StringIO(f"defs\n{good}oops\n{good}")
        table = SymbolTable()
        assert load_definitions(table, source) == 1
        assert source.read() == f"oops\n{good}"
        assert table.find("a") is not None

    def test_stops_at_wrong_bucket(self):
        wrong = (bucket_index("b") + 1) % 1024
        source = io.StringIO(f"defs\n{bucket_index('a')},a,0,0\n{wrong},b,0,0\n")
        table = SymbolTable()
        assert load_definitions(table, source) == 1
        assert table.find("b") is None


class TestWholeCache:

    def test_store_then_load(self, commands):
        expected = list(commands)
        with ProgramData() as data:
            data.trie = commands
            data.defs.insert("bpnum", 0)
            data.defs.insert("rip", 0)
            data.defs.insert("mine", 7, SymbolKind.FUNCTION)
            sink = io.StringIO()
            cache.store(data, sink, where=lambda s: s.is_builtin)
            text = sink.getvalue()

        with ProgramData() as copy:
            assert cache.load(copy, io.StringIO(text)) == 2
            assert copy.defs.find("bpnum") is not None
            assert copy.defs.find("mine") is None
            assert list(copy.trie) == expected
            assert len(copy.refs) == 0

    def test_damaged_trie(self):
        text = f"defs\n{bucket_index('a')},a,0,0\nb t"
        with ProgramData() as data:
            with pytest.raises(CacheFormatError):
                cache.load(data, io.StringIO(text))

    def test_empty_stream(self):
        with ProgramData() as data:
            assert cache.load(data, io.StringIO("")) == 0


class TestCacheFile:

    def test_default_dir_from_env(self, cache_dir):
        assert default_cache_dir() == cache_dir

    def test_default_dir_from_xdg(self, tmp_path, monkeypatch):
        monkeypatch.delenv("GDBLINT_CACHE_DIR", raising=False)
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
        assert default_cache_dir() == tmp_path / "gdblint"

    def test_path_per_arch(self, cache_dir):
        assert CacheFile(cache_dir).path == cache_dir / "commands-auto.cache"
        assert CacheFile(cache_dir, "i386:x86-64").path.name == "commands-i386:x86-64.cache"

    def test_missing_cache_reads_as_none(self, cache_dir):
        with CacheFile(cache_dir) as handle:
            assert handle.open_for_read() is None
            assert handle.closed

    def test_write_creates_directory_and_truncates(self, cache_dir):
        handle = CacheFile(cache_dir)
        handle.open_for_write().write("first, much longer content\n")
        handle.close()
        handle.open_for_write().write("second\n")
        handle.close()
        assert handle.path.read_text(encoding="utf-8") == "second\n"

    def test_single_handle(self, cache_dir):
        handle = CacheFile(cache_dir)
        first = handle.open_for_write()
        handle.open_for_read()
        assert first.closed
        handle.close()
        assert handle.closed

    def test_clear(self, cache_dir):
        CacheFile(cache_dir, "a").open_for_write().close()
        CacheFile(cache_dir, "b").open_for_write().close()
        (cache_dir / "unrelated.txt").write_text("keep", encoding="utf-8")
        assert CacheFile(cache_dir).clear() == 2
        assert [p.name for p in cache_dir.iterdir()] == ["unrelated.txt"]

    def test_clear_without_directory(self, tmp_path):
        assert CacheFile(tmp_path / "missing").clear() == 0
