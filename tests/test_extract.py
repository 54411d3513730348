"""
Tests for label-anchored extraction rules.
"""

from interview_coach.protocol.extract import (
    categorize_question,
    extract_list,
    extract_number,
    extract_numbered_lines,
    extract_section,
    normalize_labels,
)
from interview_coach.protocol.grammar import (
    FEEDBACK,
    MATCH_SCORE,
    OVERALL_FEEDBACK,
    SCORE,
    STRENGTHS,
    WEAKNESSES,
)


class TestNormalizeLabels:
    """Test markdown decoration stripping."""

    def test_bold_label(self):
        """Test bold markers around labels are removed."""
        assert normalize_labels("**SCORE:** 8") == "SCORE: 8"

    def test_heading_label(self):
        """Test heading markers before labels are removed."""
        assert normalize_labels("## STRENGTHS:\n- a") == "STRENGTHS:\n- a"

    def test_space_before_colon(self):
        """Test spaces before the colon are removed."""
        assert normalize_labels("SCORE : 7") == "SCORE: 7"

    def test_crlf_line_endings(self):
        """Test CRLF line endings are normalized."""
        assert normalize_labels("SCORE: 7\r\nFEEDBACK:\r\nok") == "SCORE: 7\nFEEDBACK:\nok"

    def test_plain_text_unchanged(self):
        """Test plain text passes through unchanged."""
        text = "The score was fine: nothing to add."
        assert normalize_labels(text) == text

    def test_empty(self):
        """Test empty input."""
        assert normalize_labels("") == ""
        assert normalize_labels(None) == ""


class TestExtractNumber:
    """Test scalar numeric extraction."""

    def test_integer(self):
        """Test extracting an integer."""
        assert extract_number("SCORE: 8", SCORE) == 8.0

    def test_decimal(self):
        """Test extracting a decimal."""
        assert extract_number("SCORE:7.5/10", SCORE) == 7.5

    def test_first_match_wins(self):
        """Test the first occurrence of a label is used."""
        assert extract_number("SCORE: 6\nlater SCORE: 9", SCORE) == 6.0

    def test_missing_label(self):
        """Test a missing label gives None."""
        assert extract_number("no numbers here", SCORE) is None

    def test_unparseable_number(self):
        """Test an unreadable number gives None."""
        assert extract_number("SCORE: ...", SCORE) is None

    def test_label_not_matched_inside_longer_label(self):
        """SCORE: must not pick up MATCH_SCORE: values."""
        assert extract_number("MATCH_SCORE: 92", SCORE) is None
        assert extract_number("MATCH_SCORE: 92", MATCH_SCORE) == 92.0

    def test_empty_text(self):
        """Test empty text gives None."""
        assert extract_number("", SCORE) is None


class TestExtractSection:
    """Test free-text section extraction."""

    def test_section_to_end(self):
        """Test a section runs to the end of the text."""
        assert extract_section("SCORE: 8\n\nFEEDBACK:\nGood job\n", FEEDBACK) == "Good job"

    def test_section_stops_at_next_label(self):
        """Test a section stops at the next known label."""
        text = "OVERALL_FEEDBACK:\nSolid profile.\nNeeds depth.\n\nSTRENGTHS:\n- Python"
        assert extract_section(text, OVERALL_FEEDBACK) == "Solid profile.\nNeeds depth."

    def test_unrecognized_caps_words_do_not_end_section(self):
        """Test unknown capitalized words stay in the section."""
        text = "FEEDBACK:\nNOTE: keep answers short\nmore text"
        assert extract_section(text, FEEDBACK) == "NOTE: keep answers short\nmore text"

    def test_missing_label(self):
        """Test a missing section gives None."""
        assert extract_section("nothing", FEEDBACK) is None

    def test_feedback_not_matched_inside_overall_feedback(self):
        """Test FEEDBACK does not match inside OVERALL_FEEDBACK."""
        assert extract_section("OVERALL_FEEDBACK:\ntext", FEEDBACK) is None


class TestExtractList:
    """Test bullet list extraction."""

    def test_dash_bullets(self):
        """Test dash bullet items."""
        text = "MATCH_SCORE: 92\n\nSTRENGTHS:\n- Clear writing\n- Relevant skills\n"
        assert extract_list(text, STRENGTHS) == ["Clear writing", "Relevant skills"]

    def test_alternative_bullets(self):
        """Test star and dot bullet items."""
        text = "STRENGTHS:\n• One\n* Two\n-Three"
        assert extract_list(text, STRENGTHS) == ["One", "Two", "Three"]

    def test_non_bullet_lines_ignored(self):
        """Test lines without a bullet are skipped."""
        text = "STRENGTHS:\nIntro line\n- Item\n---\n"
        assert extract_list(text, STRENGTHS) == ["Item"]

    def test_list_stops_at_next_label(self):
        """Test a list stops at the next known label."""
        text = "STRENGTHS:\n- A\n\nWEAKNESSES:\n- B"
        assert extract_list(text, STRENGTHS) == ["A"]
        assert extract_list(text, WEAKNESSES) == ["B"]

    def test_present_but_empty(self):
        """Test an empty list under a present label."""
        assert extract_list("STRENGTHS:\n\nWEAKNESSES:\n- B", STRENGTHS) == []

    def test_missing_label(self):
        """Test a missing list label gives None."""
        assert extract_list("- orphan", STRENGTHS) is None


class TestNumberedLines:
    """Test numbered question line extraction."""

    def test_both_markers(self):
        """Test dot and parenthesis numbering."""
        text = "Intro\n1. First?\n2) Second?\n  10. Tenth?"
        assert extract_numbered_lines(text) == ["First?", "Second?", "Tenth?"]

    def test_empty_body_skipped(self):
        """Test numbered lines with no text are skipped."""
        assert extract_numbered_lines("1.\n2. Real") == ["Real"]

    def test_no_numbered_lines(self):
        """Test text without numbered lines."""
        assert extract_numbered_lines("just prose") == []
        assert extract_numbered_lines("") == []


class TestCategorizeQuestion:
    """Test keyword categorization."""

    def test_technical(self):
        """Test technical keywords."""
        assert categorize_question("How would you implement a rate limiter?") == "Technical"

    def test_behavioral(self):
        """Test behavioral keywords."""
        assert categorize_question("Tell me about a time you failed.") == "Behavioral"

    def test_general(self):
        """Test questions with no keywords."""
        assert categorize_question("Why do you want this job?") == "General"

    def test_technical_checked_first(self):
        """Test technical keywords win over behavioral ones."""
        assert categorize_question("Describe a time you had to debug code") == "Technical"
