"""Unit tests for lexis.engine.documents — decoding bodies and files."""

import pytest

from lexis.engine.documents import decode_document, load_document_file
from lexis.engine.errors import InvalidTranslationError, TranslationSourceError


class TestDecodeDocument:
    def test_json(self):
        assert decode_document('{"A": "a"}') == {"A": "a"}

    def test_yaml(self):
        assert decode_document("A: a\nB: 'b {0}'\n", as_yaml=True) == {"A": "a", "B": "b {0}"}

    def test_bad_json(self):
        with pytest.raises(InvalidTranslationError) as exc:
            decode_document("{", source="https://x")
        assert exc.value.source == "https://x"

    def test_yaml_scalar(self):
        with pytest.raises(InvalidTranslationError):
            decode_document("just text", as_yaml=True)


class TestLoadDocumentFile:
    def test_nested_values_kept(self, write_file):
        path = write_file("en.yaml", "A: a\nB:\n  inner: x\n")
        assert load_document_file(path) == {"A": "a", "B": {"inner": "x"}}

    def test_empty_file(self, write_file):
        with pytest.raises(InvalidTranslationError):
            load_document_file(write_file("empty.yaml", ""))

    def test_unparsable(self, write_file):
        with pytest.raises(TranslationSourceError):
            load_document_file(write_file("bad.yaml", "A: [unclosed\n"))

    @pytest.mark.parametrize("path", ["", None, 12])
    def test_invalid_path(self, path):
        with pytest.raises(TranslationSourceError):
            load_document_file(path)
