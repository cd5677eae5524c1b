"""Tests for HTML discovery and best-effort writes."""

from __future__ import annotations

from static_csp.files import (
    WriteResult,
    append_headers_file,
    discover_html_files,
    read_document,
    write_document,
)


class TestDiscoverHtmlFiles:
    def test_finds_all_html_sorted(self, build_dir):
        found = [p.relative_to(build_dir).as_posix() for p in discover_html_files(build_dir)]
        assert found == ["blog/index.html", "blog/other.html", "blog/post.html", "index.html"]

    def test_ignores_other_files(self, build_dir):
        (build_dir / "app.js").write_text("x()", encoding="utf-8")
        (build_dir / "notes.htm").write_text("<p></p>", encoding="utf-8")
        assert len(discover_html_files(build_dir)) == 4

    def test_exclude_relative_pattern(self, build_dir):
        found = discover_html_files(build_dir, ["blog/*"])
        assert [p.name for p in found] == ["index.html"]

    def test_exclude_full_path_pattern(self, build_dir):
        found = discover_html_files(build_dir, [f"{build_dir.as_posix()}/blog/post.html"])
        assert "post.html" not in [p.name for p in found]
        assert len(found) == 3

    def test_negated_pattern_accepted(self, build_dir):
        found = discover_html_files(build_dir, ["!blog/other.html"])
        assert "other.html" not in [p.name for p in found]

    def test_blank_patterns_ignored(self, build_dir):
        assert len(discover_html_files(build_dir, ["", "  "])) == 4

    def test_paths_start_with_build_dir(self, build_dir):
        for path in discover_html_files(build_dir):
            assert path.as_posix().startswith(build_dir.as_posix() + "/")


class TestReadDocument:
    def test_invalid_utf8_replaced(self, tmp_path):
        target = tmp_path / "page.html"
        target.write_bytes(b"<p>caf\xe9</p>")
        assert read_document(target) == "<p>caf\ufffd</p>"


class TestWriteDocument:
    def test_overwrites(self, tmp_path):
        target = tmp_path / "page.html"
        target.write_text("old", encoding="utf-8")
        assert write_document(target, "new") == WriteResult(path=str(target))
        assert read_document(target) == "new"

    def test_failure_returned_not_raised(self, tmp_path):
        result = write_document(tmp_path, "cannot write a directory")
        assert result.ok is False
        assert result.error


class TestAppendHeadersFile:
    def test_creates_file(self, tmp_path):
        target = tmp_path / "_headers"
        result = append_headers_file(target, ["/a\n  X: 1", "/b\n  X: 2"])
        assert result.ok
        assert target.read_text(encoding="utf-8") == "/a\n  X: 1\n/b\n  X: 2\n"

    def test_appends_to_existing_content(self, tmp_path):
        target = tmp_path / "_headers"
        target.write_text("/*\n  X-Frame-Options: DENY\n", encoding="utf-8")
        append_headers_file(target, ["/a\n  X: 1"])
        assert target.read_text(encoding="utf-8") == "/*\n  X-Frame-Options: DENY\n/a\n  X: 1\n"

    def test_starts_on_new_line(self, tmp_path):
        target = tmp_path / "_headers"
        target.write_text("/*\n  X-Frame-Options: DENY", encoding="utf-8")
        append_headers_file(target, ["/a\n  X: 1"])
        assert target.read_text(encoding="utf-8") == "/*\n  X-Frame-Options: DENY\n/a\n  X: 1\n"

    def test_nothing_to_write(self, tmp_path):
        target = tmp_path / "_headers"
        assert append_headers_file(target, []).ok
        assert not target.exists()

    def test_failure_returned_not_raised(self, tmp_path):
        result = append_headers_file(tmp_path / "missing" / "_headers", ["/a\n  X: 1"])
        assert result.ok is False
        assert result.error
