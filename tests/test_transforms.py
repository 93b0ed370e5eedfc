"""Tests for the named text transforms."""

from paperwriter.core.transforms import (
    apply_transform,
    bullets_to_array,
    bullets_to_numbered_sentences,
    bullets_to_text,
    combine_ideas,
    combine_sentences,
    combine_solutions,
    ensure_terminal_punctuation,
    run_transform,
    text_to_bullets,
)


class TestEnsureTerminalPunctuation:
    def test_appends_period(self):
        assert ensure_terminal_punctuation("Hook") == "Hook."

    def test_keeps_existing_mark(self):
        assert ensure_terminal_punctuation("Why now?") == "Why now?"
        assert ensure_terminal_punctuation("Act now!") == "Act now!"

    def test_collapses_repeated_marks(self):
        assert ensure_terminal_punctuation("Done..") == "Done."
        assert ensure_terminal_punctuation("Really?!") == "Really?"

    def test_blank_is_empty(self):
        assert ensure_terminal_punctuation("   ") == ""


class TestBullets:
    def test_bullets_to_array_strips_markers(self):
        bullets = "- first point\n• second point\n* third point\n\n"
        assert bullets_to_array(bullets) == ["first point", "second point", "third point"]

    def test_bullets_to_text(self):
        assert bullets_to_text("- 40% of funds unspent\n- Pledges fell in 2022.") == (
            "40% of funds unspent. Pledges fell in 2022."
        )

    def test_numbered_sentences(self):
        result = bullets_to_numbered_sentences("- Expand the fund\n- Audit pledges", intro="We propose:")
        assert result == "We propose: First, expand the fund. Second, audit pledges."

    def test_numbered_sentences_empty(self):
        assert bullets_to_numbered_sentences("") == ""

    def test_text_to_bullets(self):
        assert text_to_bullets("Emissions rose. Funding lagged!") == "• Emissions rose\n• Funding lagged"


class TestCombining:
    def test_combine_sentences_skips_blanks(self):
        assert combine_sentences(["Scope is global", "", "  ", "Costs are high."]) == (
            "Scope is global. Costs are high."
        )

    def test_combine_sentences_no_double_periods(self):
        assert combine_sentences(["One..", "Two"]) == "One. Two."

    def test_combine_solutions_names_country(self):
        result = combine_solutions(["Create a green fund", "share technology"], "Brazil")
        assert result == (
            "Brazil proposes the following solutions to address this issue. "
            "First, create a green fund. Second, share technology."
        )

    def test_combine_solutions_default_delegation(self):
        result = combine_solutions(["Create a green fund"], "")
        assert result.startswith("Our delegation proposes")

    def test_combine_solutions_all_blank(self):
        assert combine_solutions(["", " "], "Brazil") == ""

    def test_combine_ideas_stays_rough(self):
        assert combine_ideas(["rising seas", "", "small islands hit first"]) == "rising seas small islands hit first"


class TestApplyTransform:
    def test_direct_passes_value(self):
        assert apply_transform("as is", "direct") == "as is"

    def test_bullets_to_text(self):
        assert apply_transform("- a\n- b", "bullets-to-text") == "a. b."

    def test_unknown_transform_passes_through(self):
        assert apply_transform("keep me", "no-such-transform") == "keep me"

    def test_missing_transform_passes_through(self):
        assert apply_transform("keep me") == "keep me"

    def test_multi_source_name_passes_through(self):
        assert apply_transform("keep me", "combine-solutions") == "keep me"

    def test_run_transform_all_blank_is_empty(self):
        assert run_transform("combine-sentences", ["", "  "]) == ""
