"""
Unit tests for the generation response parser
"""

import json

import pytest

from cropsync.llm.response_parser import (
    ResponseParseError,
    parse_braced_region,
    parse_recommendation_response,
    parse_repaired_region,
    parse_structured,
    parse_verbatim,
    repair_json,
    strip_code_fences,
)


SAMPLE_RESPONSE = {
    "weatherSummary": "Warm and dry",
    "recommendations": [
        {
            "crop": {"id": "maize", "name": "Maize", "waterRequirement": "Medium"},
            "suitabilityScore": 88,
            "reasoning": "Warm temperatures suit maize",
            "benefits": ["Staple food"],
            "warnings": [],
        }
    ],
    "generalAdvice": "Plant early.",
}


class TestParseStrategies:
    """Test cases for the individual parse strategies."""

    def test_verbatim(self):
        assert parse_verbatim('{"a": 1}') == {"a": 1}
        assert parse_verbatim("Sure! {\"a\": 1}") is None

    def test_verbatim_rejects_non_objects(self):
        assert parse_verbatim("[1, 2]") is None
        assert parse_verbatim("42") is None

    def test_braced_region(self):
        text = 'Here are the crops: {"recommendations": [], "generalAdvice": "x"} Hope this helps'
        assert parse_braced_region(text) == {"recommendations": [], "generalAdvice": "x"}
        assert parse_braced_region("no braces at all") is None

    def test_repair_json(self):
        """Test single quotes, bare keys and trailing commas are repaired."""
        broken = "{'recommendations': [], generalAdvice: 'Mulch',}"
        assert json.loads(repair_json(broken)) == {"recommendations": [], "generalAdvice": "Mulch"}

    def test_repair_keeps_apostrophes_in_values(self):
        broken = '{"generalAdvice": "Lusaka\'s rains are good", "tips": ["farmer\'s choice"],}'
        assert json.loads(repair_json(broken)) == {
            "generalAdvice": "Lusaka\'s rains are good",
            "tips": ["farmer\'s choice"],
        }

    def test_repair_leaves_colons_and_commas_in_values(self):
        broken = '{generalAdvice: "Plant early, note: mulch, then weed", recommendations: [],}'
        assert json.loads(repair_json(broken)) == {
            "generalAdvice": "Plant early, note: mulch, then weed",
            "recommendations": [],
        }

    def test_repair_single_quoted_value_with_apostrophe(self):
        broken = "{'generalAdvice': 'Farmer's choice', 'quote': 'say \"hi\"'}"
        assert json.loads(repair_json(broken)) == {
            "generalAdvice": "Farmer's choice",
            "quote": 'say "hi"',
        }

    def test_repaired_region(self):
        text = "Result -> {recommendations: [1, 2,], 'weatherSummary': 'Dry'} <- end"
        assert parse_repaired_region(text) == {"recommendations": [1, 2], "weatherSummary": "Dry"}

    def test_strip_code_fences(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fences(None) == ""


class TestParseStructured:
    """Test cases for the strategy chain."""

    def test_first_successful_strategy_wins(self):
        assert parse_structured('{"a": 1}') == {"a": 1}

    def test_falls_through_to_repair(self):
        assert parse_structured("Answer: {a: 1,}") == {"a": 1}

    def test_custom_strategies(self):
        calls = []

        def never(text):
            calls.append(text)
            return None

        with pytest.raises(ResponseParseError):
            parse_structured('{"a": 1}', strategies=[never])
        assert calls == ['{"a": 1}']

    def test_total_failure(self):
        with pytest.raises(ResponseParseError) as exc_info:
            parse_structured("I cannot help with that.")
        assert exc_info.value.raw_length == len("I cannot help with that.")

    def test_empty_text(self):
        with pytest.raises(ResponseParseError):
            parse_structured("")


class TestParseRecommendationResponse:
    """Test cases for recommendation response parsing."""

    def test_full_response(self):
        result = parse_recommendation_response(json.dumps(SAMPLE_RESPONSE), "Lusaka")

        assert result.location_name == "Lusaka"
        assert result.weather_summary == "Warm and dry"
        assert result.general_advice == "Plant early."
        assert len(result.recommendations) == 1
        rec = result.recommendations[0]
        assert rec.crop.name == "Maize"
        assert rec.suitability_score == 88
        assert rec.benefits == ["Staple food"]

    def test_fenced_empty_recommendations_is_valid(self):
        """Test a fenced empty list parses to an empty, non-fallback result."""
        result = parse_recommendation_response('```json\n{"recommendations": []}\n```', "Lusaka")
        assert result.recommendations == []

    def test_apostrophe_with_trailing_comma(self):
        """Test a reply needing only a comma fix still parses when prose has apostrophes."""
        text = '{"recommendations": [], "generalAdvice": "Lusaka\'s rains are good",}'
        result = parse_recommendation_response(text, "Lusaka")
        assert result.recommendations == []
        assert result.general_advice == "Lusaka\'s rains are good"

    def test_score_is_clamped(self):
        data = json.loads(json.dumps(SAMPLE_RESPONSE))
        data["recommendations"][0]["suitabilityScore"] = 140
        result = parse_recommendation_response(json.dumps(data), "Lusaka")
        assert result.recommendations[0].suitability_score == 100

    def test_missing_recommendations(self):
        with pytest.raises(ResponseParseError):
            parse_recommendation_response('{"generalAdvice": "x"}', "Lusaka")

    def test_recommendations_not_a_list(self):
        with pytest.raises(ResponseParseError):
            parse_recommendation_response('{"recommendations": "maize"}', "Lusaka")

    def test_entry_without_crop_name(self):
        text = json.dumps({"recommendations": [{"crop": {}, "suitabilityScore": 50}]})
        with pytest.raises(ResponseParseError):
            parse_recommendation_response(text, "Lusaka")

    def test_unparseable(self):
        with pytest.raises(ResponseParseError):
            parse_recommendation_response("Sorry, the service is busy.", "Lusaka")
