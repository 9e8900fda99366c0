"""Tests for JSON extraction utility."""

import pytest

from verse_coach.utils.json_parser import extract_json


class TestExtractJson:
    def test_direct_json(self):
        assert extract_json('{"suggestions": []}') == {"suggestions": []}

    def test_fenced_code_block(self):
        text = 'Segue o resultado:\n```json\n{"suggestions": []}\n```'
        assert extract_json(text) == {"suggestions": []}

    def test_fenced_without_json_tag(self):
        text = '```\n{"key": "value"}\n```'
        assert extract_json(text) == {"key": "value"}

    def test_embedded_object(self):
        text = 'Análise: {"suggestions": [{"originalText": "vem"}]} fim.'
        result = extract_json(text)
        assert result["suggestions"][0]["originalText"] == "vem"

    def test_bare_array(self):
        text = 'Sugestões: [{"originalText": "gosta"}] e pronto.'
        assert extract_json(text) == [{"originalText": "gosta"}]

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError, match="Could not extract JSON"):
            extract_json("nenhum json aqui")

    def test_empty_string_raises(self):
        with pytest.raises(ValueError):
            extract_json("")

    def test_multiline_fenced(self):
        text = """Resultado:
```json
{
  "suggestions": [
    {"originalText": "Eu gosta", "correctedText": "Eu gosto"}
  ]
}
```"""
        result = extract_json(text)
        assert result["suggestions"][0]["correctedText"] == "Eu gosto"
