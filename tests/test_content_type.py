"""Tests for body token resolution."""

from pathlib import Path

import pytest

from ingress_http.content_type import FileReadError, resolve_body


class TestResolveBodyFiles:
    """Tokens ending in a recognized extension are read from disk."""

    def test_json_file(self, tmp_path: Path) -> None:
        payload = tmp_path / "payload.json"
        payload.write_bytes(b'{"a":1}')

        body, content_type = resolve_body(str(payload))

        assert body == b'{"a":1}'
        assert content_type == "application/json"

    def test_xml_file(self, tmp_path: Path) -> None:
        payload = tmp_path / "payload.xml"
        payload.write_bytes(b"<a>1</a>")

        assert resolve_body(str(payload)) == (b"<a>1</a>", "application/xml")

    def test_txt_file(self, tmp_path: Path) -> None:
        payload = tmp_path / "note.txt"
        payload.write_bytes(b"hello\n")

        assert resolve_body(str(payload)) == (b"hello\n", "text/plain")

    def test_relative_path_resolved_from_cwd(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "payload.json").write_bytes(b"[]")
        monkeypatch.chdir(tmp_path)

        assert resolve_body("payload.json") == (b"[]", "application/json")

    def test_binary_content_unchanged(self, tmp_path: Path) -> None:
        payload = tmp_path / "blob.txt"
        payload.write_bytes(b"\x00\xff\x10")

        body, _ = resolve_body(str(payload))

        assert body == b"\x00\xff\x10"


class TestResolveBodyLiteral:
    """Anything else is sent as UTF-8 text with no content type."""

    def test_plain_text(self) -> None:
        assert resolve_body("hello world") == (b"hello world", None)

    def test_inline_json_is_literal(self) -> None:
        assert resolve_body('{"a": 1}') == (b'{"a": 1}', None)

    def test_unrecognized_extension_is_literal(self) -> None:
        assert resolve_body("image.png") == (b"image.png", None)

    def test_bare_extension_is_literal(self) -> None:
        """'.json' alone has no file name before the extension."""
        assert resolve_body(".json") == (b".json", None)

    def test_unicode_encoded_as_utf8(self) -> None:
        assert resolve_body("héllo") == ("héllo".encode("utf-8"), None)

    def test_multiline_token_is_literal(self) -> None:
        assert resolve_body("a\nb.json") == (b"a\nb.json", None)


class TestResolveBodyErrors:
    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """No fallback to literal text for a file-looking token."""
        with pytest.raises(FileReadError, match="missing.json"):
            resolve_body(str(tmp_path / "missing.json"))

    def test_directory_raises(self, tmp_path: Path) -> None:
        folder = tmp_path / "dir.json"
        folder.mkdir()

        with pytest.raises(FileReadError):
            resolve_body(str(folder))
