"""Tests for bookmark relevance ranking and prior-context gathering."""

from paperwriter.core.relevance import (
    MAX_BACKGROUND_CONTENT_CHARS,
    TRUNCATION_MARKER,
    extract_keywords,
    format_sections_markdown,
    gather_prior_context,
    select_relevant_sections,
)
from paperwriter.core.schemas_draft import BookmarkSection, BookmarkSource


def _section(section_id: str, heading: str, content: str = "") -> BookmarkSection:
    return BookmarkSection(id=section_id, heading_text=heading, content=content)


class TestExtractKeywords:
    def test_drops_stop_words_short_tokens_and_punctuation(self):
        assert extract_keywords("What is the Climate-Finance gap? UN, EU.") == {"climate", "finance", "gap"}

    def test_empty(self):
        assert extract_keywords("") == set()


class TestSelectRelevantSections:
    def test_heading_match_ranks_first(self):
        sections = [
            _section("s1", "Refugee Protection", "Camps and asylum policy."),
            _section("s2", "Health Systems", "Hospitals and clinics."),
            _section("s3", "Climate Finance", "Adaptation funding and pledges."),
            _section("s4", "Trade Rules", "Tariffs."),
        ]

        ranked = select_relevant_sections(sections, "climate finance funding", limit=2)

        assert ranked[0].id == "s3"
        assert len(ranked) == 2

    def test_input_within_limit_returned_unchanged(self):
        sections = [_section("s1", "Unrelated"), _section("s2", "Climate Finance")]
        assert select_relevant_sections(sections, "climate finance") == sections

    def test_ties_keep_input_order(self):
        sections = [_section(f"s{i}", f"Heading {i}") for i in range(5)]
        ranked = select_relevant_sections(sections, "nothing matches here")
        assert [s.id for s in ranked] == ["s0", "s1", "s2"]

    def test_content_counts_less_than_heading(self):
        sections = [
            _section("body", "Overview", "climate finance discussed at length"),
            _section("head", "Climate Finance", ""),
            _section("x", "Other"),
            _section("y", "Other"),
        ]
        ranked = select_relevant_sections(sections, "climate finance", limit=1)
        assert ranked[0].id == "head"


class TestFormatSections:
    def test_markdown_blocks(self):
        rendered = format_sections_markdown([_section("a", "Origins", "Began in 1992."), _section("b", "Now", "Ongoing.")])
        assert rendered == "### Origins\n\nBegan in 1992.\n\n### Now\n\nOngoing."

    def test_truncates_long_content(self):
        rendered = format_sections_markdown([_section("a", "Long", "x" * 5000)])
        assert rendered.endswith(TRUNCATION_MARKER)
        assert len(rendered) == MAX_BACKGROUND_CONTENT_CHARS + len(TRUNCATION_MARKER)


class TestGatherPriorContext:
    def test_collects_present_slots_only(self, paper_draft):
        paper_draft.layers.comprehension.update({"presentState": "Funding gap widening", "timeline": "  "})
        paper_draft.layers.idea_formation["solutionIdea"] = "Blended finance"

        prior = gather_prior_context(paper_draft)

        assert prior.why_important == "Funding gap widening"
        assert prior.key_events is None
        assert prior.proposed_solutions == "Blended finance"
        assert prior.background_guide_topics is None
        assert prior.to_payload() == {"whyImportant": "Funding gap widening", "proposedSolutions": "Blended finance"}

    def test_includes_ranked_background_guide(self, paper_draft):
        paper_draft.imported_bookmarks.append(
            BookmarkSource(
                pathname="/modelun/background-guides/unep",
                title="UNEP Guide",
                heading_texts=["Refugees", "Health", "Climate Finance", "Trade"],
                sections=[
                    _section("s1", "Refugees", "Camps."),
                    _section("s2", "Health", "Clinics."),
                    _section("s3", "Climate Finance", "Funding pledges."),
                    _section("s4", "Trade", "Tariffs."),
                ],
            )
        )

        prior = gather_prior_context(paper_draft, "funding")

        assert prior.background_guide_topics == ["Refugees", "Health", "Climate Finance", "Trade"]
        assert prior.background_guide_content.startswith("### Climate Finance")
