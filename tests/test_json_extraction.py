"""
Tests for extract_json() in agents/base.py — pulling a statement object
out of whatever a model wrapped it in.
"""

from agents.base import extract_json


class TestExtractJson:
    def test_valid_json_direct(self):
        assert extract_json('{"content": "view", "score": 4}') == {"content": "view", "score": 4}

    def test_json_in_markdown_block(self):
        text = 'Here is my view:\n```json\n{"content": "AI capex cycle", "score": 5}\n```\nDone.'
        assert extract_json(text)["score"] == 5

    def test_json_in_generic_code_block(self):
        text = 'Result:\n```\n{"content": "x", "risks": ["competition"]}\n```'
        assert extract_json(text)["risks"] == ["competition"]

    def test_json_with_surrounding_prose(self):
        text = 'Based on my analysis, {"content": "Strong moat", "targetPrice": 90000} is the result.'
        assert extract_json(text)["targetPrice"] == 90000

    def test_trailing_commas(self):
        text = '{"content": "x", "risks": ["valuation", "competition",], "score": 3,}'
        result = extract_json(text)
        assert result["risks"] == ["valuation", "competition"]
        assert result["score"] == 3

    def test_no_json(self):
        assert extract_json("I'd rather not say.") is None

    def test_empty(self):
        assert extract_json("") is None

