"""Unit tests for chat instruction text."""

from __future__ import annotations

from knowme.models.space import Space
from knowme.services.chat.prompt_builder import (
    build_context_instructions,
    build_instructions,
    fallback_line,
)


class TestFallbackLine:
    def test_default_names_the_owner(self) -> None:
        assert fallback_line(Space(name="S", owner_name="Ana")) == (
            "I don't have that information in the provided documents. "
            "Please reach out to Ana for more details."
        )

    def test_default_without_owner_name(self) -> None:
        assert "Please reach out to the owner for more details." in fallback_line(Space(name="S"))

    def test_owner_text_wins(self) -> None:
        space = Space(name="S", fallback_message="  Ask me on LinkedIn instead.  ")
        assert fallback_line(space) == "Ask me on LinkedIn instead."


class TestInstructions:
    def test_indexed_instructions_cover_the_rules(self) -> None:
        space = Space(
            name="Ana's Portfolio",
            owner_name="Ana",
            tone="warm",
            audience="recruiters",
            do_not_mention="salary",
            persona_style="Speak like a mentor",
            description="Always mention I am open to relocation.",
        )
        text = build_instructions(space)

        assert text.startswith("You are Ana's Portfolio")
        assert "ALWAYS search the knowledge files before answering" in text
        assert "who you are" in text
        assert "first person" in text
        assert f'"{fallback_line(space)}"' in text
        assert "TONE: Respond in a warm tone." in text
        assert "recruiters" in text
        assert "salary" in text
        assert "PERSONA STYLE: Speak like a mentor" in text
        assert text.endswith("Always mention I am open to relocation.")
        assert text.index("RULES:") < text.index("OWNER INSTRUCTIONS")

    def test_optional_sections_omitted(self) -> None:
        text = build_instructions(Space(name="Bare"))
        assert "OWNER INSTRUCTIONS" not in text
        assert "TONE:" not in text

    def test_context_instructions_embed_documents(self) -> None:
        text = build_context_instructions(Space(name="Bare", owner_name="Bo"), "Bo builds boats.")
        assert "---DOCUMENTS---\nBo builds boats.\n---END DOCUMENTS---" in text
        assert "Please reach out to Bo for more details." in text
