"""
Tests for field validation and text neutralization.
"""

import pytest

from design_request_backend.errors import FieldValidationError
from design_request_backend.models import Budget, ProjectType, StylePreference, Timeline
from design_request_backend.validation import neutralize_text, validate_submission

REQUIRED = ["clientName", "email", "projectType", "timeline", "budget", "designDescription"]


def violation_fields(exc_info):
    return [violation.field for violation in exc_info.value.violations]


class TestRequiredFields:
    def test_valid_submission_passes(self, valid_fields):
        form = validate_submission(valid_fields)
        assert form.client_name == "Alice Cerney"
        assert form.project_type is ProjectType.WEBSITE
        assert form.style_preferences is StylePreference.MINIMALIST

    def test_strings_are_trimmed(self, valid_fields):
        valid_fields["clientName"] = "   Alice Cerney \n"
        valid_fields["budget"] = " 5000+ "
        form = validate_submission(valid_fields)
        assert form.client_name == "Alice Cerney"
        assert form.budget is Budget.FROM_5000

    @pytest.mark.parametrize("field", REQUIRED)
    @pytest.mark.parametrize("blank", ["", "   ", "\t\n"])
    def test_blank_required_field_is_named(self, valid_fields, field, blank):
        valid_fields[field] = blank
        with pytest.raises(FieldValidationError) as exc_info:
            validate_submission(valid_fields)
        assert violation_fields(exc_info) == [field]

    @pytest.mark.parametrize("field", REQUIRED)
    def test_missing_required_field_is_named(self, valid_fields, field):
        del valid_fields[field]
        with pytest.raises(FieldValidationError) as exc_info:
            validate_submission(valid_fields)
        assert field in violation_fields(exc_info)
        assert any("is required" in message for message in exc_info.value.messages)

    def test_all_violations_reported_together(self):
        with pytest.raises(FieldValidationError) as exc_info:
            validate_submission({})
        assert violation_fields(exc_info) == REQUIRED

    def test_optional_fields_may_be_omitted(self, valid_fields):
        for field in ("phoneNumber", "referenceWebsites", "colorPreferences", "stylePreferences", "keyFeatures"):
            del valid_fields[field]
        form = validate_submission(valid_fields)
        assert form.phone_number == ""
        assert form.style_preferences is None

    def test_non_text_value_rejected(self, valid_fields):
        valid_fields["clientName"] = 12345
        with pytest.raises(FieldValidationError) as exc_info:
            validate_submission(valid_fields)
        assert exc_info.value.messages == ["Client name must be text"]

    def test_unknown_fields_ignored(self, valid_fields):
        valid_fields["agreeTerms"] = True
        validate_submission(valid_fields)


class TestEnumFields:
    @pytest.mark.parametrize(
        "field,enum",
        [
            ("projectType", ProjectType),
            ("timeline", Timeline),
            ("budget", Budget),
            ("stylePreferences", StylePreference),
        ],
    )
    def test_every_vocabulary_value_accepted(self, valid_fields, field, enum):
        for member in enum:
            valid_fields[field] = member.value
            validate_submission(valid_fields)

    @pytest.mark.parametrize("field", ["projectType", "timeline", "budget", "stylePreferences"])
    def test_value_outside_vocabulary_rejected(self, valid_fields, field):
        valid_fields[field] = "spaceship"
        with pytest.raises(FieldValidationError) as exc_info:
            validate_submission(valid_fields)
        assert violation_fields(exc_info) == [field]
        assert "must be one of" in exc_info.value.messages[0]

    def test_empty_style_preference_allowed(self, valid_fields):
        valid_fields["stylePreferences"] = ""
        assert validate_submission(valid_fields).style_preferences is None


class TestLengthAndFormat:
    @pytest.mark.parametrize("length,accepted", [(9, False), (10, True), (5000, True), (5001, False)])
    def test_description_length_boundaries(self, valid_fields, length, accepted):
        valid_fields["designDescription"] = "d" * length
        if accepted:
            assert len(validate_submission(valid_fields).design_description) == length
        else:
            with pytest.raises(FieldValidationError) as exc_info:
                validate_submission(valid_fields)
            assert violation_fields(exc_info) == ["designDescription"]

    def test_client_name_too_long(self, valid_fields):
        valid_fields["clientName"] = "n" * 101
        with pytest.raises(FieldValidationError) as exc_info:
            validate_submission(valid_fields)
        assert exc_info.value.messages == ["Client name must be at most 100 characters"]

    @pytest.mark.parametrize("email", ["alice", "alice@", "alice@example", "al ice@example.com"])
    def test_invalid_email_rejected(self, valid_fields, email):
        valid_fields["email"] = email
        with pytest.raises(FieldValidationError) as exc_info:
            validate_submission(valid_fields)
        assert exc_info.value.messages == ["Email must be a valid email address"]

    def test_phone_with_letters_rejected(self, valid_fields):
        valid_fields["phoneNumber"] = "call me maybe"
        with pytest.raises(FieldValidationError) as exc_info:
            validate_submission(valid_fields)
        assert violation_fields(exc_info) == ["phoneNumber"]

    def test_reference_websites_short_entries_accepted(self, valid_fields):
        valid_fields["referenceWebsites"] = "https://example.com\nthe bakery site my friend made, example.org"
        validate_submission(valid_fields)

    def test_reference_websites_long_non_url_rejected(self, valid_fields):
        valid_fields["referenceWebsites"] = "https://example.com\n" + "not a url " * 15
        with pytest.raises(FieldValidationError) as exc_info:
            validate_submission(valid_fields)
        assert violation_fields(exc_info) == ["referenceWebsites"]

    def test_reference_websites_long_url_accepted(self, valid_fields):
        valid_fields["referenceWebsites"] = "https://example.com/" + "a" * 150
        validate_submission(valid_fields)


class TestNeutralization:
    def test_markup_removed(self, valid_fields):
        valid_fields["designDescription"] = "We want <script>alert('x')</script>a bold homepage"
        form = validate_submission(valid_fields)
        assert "<" not in form.design_description
        assert "script>" not in form.design_description
        assert form.design_description == "We want alert('x')a bold homepage"

    def test_control_characters_removed(self, valid_fields):
        valid_fields["keyFeatures"] = "Gallery\x00\x07 and\u202e booking\nsecond line"
        form = validate_submission(valid_fields)
        assert form.key_features == "Gallery and booking\nsecond line"

    def test_script_scheme_removed(self):
        assert neutralize_text("javascript:alert(1)") == "alert(1)"

    def test_field_emptied_by_neutralization_rejected(self, valid_fields):
        valid_fields["clientName"] = "<b></b>"
        with pytest.raises(FieldValidationError) as exc_info:
            validate_submission(valid_fields)
        assert exc_info.value.messages == ["Client name contains no usable content"]

    def test_description_shortened_by_neutralization_rejected(self, valid_fields):
        valid_fields["designDescription"] = "<b>short</b>"
        with pytest.raises(FieldValidationError) as exc_info:
            validate_submission(valid_fields)
        assert [v.field for v in exc_info.value.violations] == ["designDescription"]
        assert exc_info.value.messages == ["Design description must be at least 10 characters"]

    def test_email_reshaped_by_neutralization_rejected(self, valid_fields):
        valid_fields["email"] = "a@<b>.com"
        with pytest.raises(FieldValidationError) as exc_info:
            validate_submission(valid_fields)
        assert [v.field for v in exc_info.value.violations] == ["email"]
        assert exc_info.value.messages == ["Email must be a valid email address"]

    @pytest.mark.parametrize(
        "text",
        [
            "plain text stays the same",
            "Tom & Jerry's \"studio\"",
            "<<b>script>alert(1)<</b>/script>",
            "javajavascript:script:alert(1)",
            "＜script＞ fullwidth brackets",
            "  spaced\r\nlines\x00  ",
            "café ligature ﬁ",
        ],
    )
    def test_neutralization_is_idempotent(self, text):
        once = neutralize_text(text)
        assert neutralize_text(once) == once

    def test_ampersands_not_escaped(self):
        assert neutralize_text("Tom & Jerry") == "Tom & Jerry"
