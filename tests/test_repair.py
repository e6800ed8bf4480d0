"""
Tests for recovering question arrays from model replies.
"""

import json

import pytest

from examforge.errors import ResponseParseError
from examforge.generation.repair import (
    REPAIR_STRATEGIES,
    escape_latex_commands,
    escape_stray_backslashes,
    extract_json_array,
    normalize_backslashes,
    parse_generated_questions,
    parse_question_array,
    to_questions,
)
from examforge.schema import DifficultyLabel, QuestionType


class TestExtractJsonArray:

    def test_extract_when_fenced_then_returns_bracketed_slice(self):
        text = 'Here you go:\n```json\n[{"text": "a"}]\n```\nThanks'

        assert extract_json_array(text) == '[{"text": "a"}]'

    def test_extract_when_no_array_then_raises(self):
        with pytest.raises(ResponseParseError, match="No JSON array"):
            extract_json_array('{"text": "not an array"}')


class TestRepairStrategies:

    def test_strategies_when_listed_then_direct_parse_first(self):
        assert [name for name, _ in REPAIR_STRATEGIES][0] == "direct"
        assert len(REPAIR_STRATEGIES) == 4

    def test_escape_stray_backslashes_when_latex_then_doubles_only_invalid_escapes(self):
        assert escape_stray_backslashes(r'\alpha and \n') == r'\\alpha and \n'

    def test_normalize_backslashes_when_unicode_like_command_then_doubled(self):
        assert normalize_backslashes(r'\underline \n \\') == r'\\underline \n \\'

    def test_normalize_backslashes_when_escaped_backslash_before_letter_then_kept(self):
        # must not be re-read as a form feed
        assert normalize_backslashes(r'\\frac') == r'\\frac'

    def test_escape_latex_commands_when_known_command_then_double_escaped(self):
        assert escape_latex_commands(r'\sum_i \sqrt{x}') == r'\\sum_i \\sqrt{x}'


class TestParseQuestionArray:

    def test_parse_when_valid_json_then_returns_list(self):
        assert parse_question_array('[{"text": "ok"}]') == [{"text": "ok"}]

    def test_parse_when_unescaped_math_backslashes_then_recovered(self):
        text = r'[{"text": "Find \alpha if \sqrt{x} = \pi"}]'

        with pytest.raises(json.JSONDecodeError):
            json.loads(text)

        assert parse_question_array(text) == [{"text": r"Find \alpha if \sqrt{x} = \pi"}]

    def test_parse_when_invalid_unicode_escape_then_recovered(self):
        text = r'[{"text": "\underline{x}\n"}]'

        assert parse_question_array(text) == [{"text": "\\underline{x}\n"}]

    def test_parse_when_all_strategies_fail_then_raises_with_original_error(self):
        with pytest.raises(ResponseParseError) as exc_info:
            parse_question_array("[{not json at all}]")

        assert isinstance(exc_info.value.__cause__, json.JSONDecodeError)
        assert exc_info.value.original_error is exc_info.value.__cause__

    def test_parse_when_no_array_then_raises(self):
        with pytest.raises(ResponseParseError):
            parse_question_array("I cannot help with that.")


class TestToQuestions:

    def test_to_questions_when_model_ids_given_then_replaced_with_fresh_ids(self, base_request):
        records = [{"id": "q1", "text": "one"}, {"id": "q1", "text": "two"}]

        questions = to_questions(records, base_request)

        ids = [q.id for q in questions]
        assert len(set(ids)) == 2
        assert all(i.startswith("gen_") for i in ids)

    def test_to_questions_when_plain_options_then_normalized_to_labeled(self, base_request):
        records = [{"text": "pick", "options": ["Red", {"text": "Blue"}], "correct": "Red"}]

        q = to_questions(records, base_request)[0]

        assert [(o.label, o.text) for o in q.options] == [("Red", "Red"), ("B", "Blue")]
        assert q.correct == ["Red"]

    def test_to_questions_when_fields_missing_then_defaults_from_request(self, base_request):
        records = [{"text": "pick", "type": "essay", "difficulty": "brutal"}]

        q = to_questions(records, base_request)[0]

        assert q.type == QuestionType.MCQ_SINGLE
        assert q.difficulty == DifficultyLabel.MEDIUM
        assert q.topic == "Photosynthesis"
        assert q.subject == "Biology"
        assert q.images.question is False

    def test_to_questions_when_records_malformed_then_skipped(self, base_request):
        records = ["just a string", {"options": []}, {"text": "kept"}]

        questions = to_questions(records, base_request)

        assert [q.text for q in questions] == ["kept"]


class TestParseGeneratedQuestions:

    def test_parse_generated_when_fenced_reply_then_questions(self, base_request):
        text = '```json\n[{"type": "true_false", "text": "Water boils at 100C", "correct": ["True"]}]\n```'

        questions = parse_generated_questions(text, base_request)

        assert len(questions) == 1
        assert questions[0].type == QuestionType.TRUE_FALSE
        assert questions[0].correct == ["True"]
