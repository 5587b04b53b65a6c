"""
Tests for validate.py - shared field validation.
"""

import pytest

from bm.core.errors import ValidationError
from bm.domain.validate import (
    validate_comment_append,
    validate_location,
    validate_position,
    validate_update_fields,
)


class TestPosition:

    def test_accepts_list_and_tuple(self):
        assert validate_position([37.5, 127]) == (37.5, 127.0)
        assert validate_position((-90, 180)) == (-90.0, 180.0)

    @pytest.mark.parametrize("bad", [None, [], [1, 2, 3], ["1", "2"], [90.01, 0], [0, 180.01]])
    def test_rejects(self, bad):
        with pytest.raises(ValidationError):
            validate_position(bad)


class TestLocation:

    def test_accepts_text(self):
        assert validate_location(" Gate A ") == " Gate A "

    @pytest.mark.parametrize("bad", [None, "", "   ", 5])
    def test_rejects_blank(self, bad):
        with pytest.raises(ValidationError):
            validate_location(bad)


class TestComments:

    def test_append_ok(self):
        assert validate_comment_append(("a",), ["a", "b"]) == ("a", "b")

    def test_unchanged_ok(self):
        assert validate_comment_append(("a",), ["a"]) == ("a",)

    def test_edit_rejected(self):
        with pytest.raises(ValidationError):
            validate_comment_append(("a", "b"), ["a", "x"])

    def test_non_string_rejected(self):
        with pytest.raises(ValidationError):
            validate_comment_append((), ["a", 3])


class TestUpdateFields:

    def test_passes_known_fields(self):
        out = validate_update_fields({"location": "Gate", "problem": True, "photo": None, "status": "보수필요"})
        assert out["problem"] is True

    def test_position_rejected(self):
        with pytest.raises(ValidationError):
            validate_update_fields({"position": [0, 0]})

    def test_problem_must_be_bool(self):
        with pytest.raises(ValidationError):
            validate_update_fields({"problem": "true"})

    def test_does_not_mutate_input(self):
        fields = {"comments": ["a"]}
        validate_update_fields(fields)
        assert fields == {"comments": ["a"]}
