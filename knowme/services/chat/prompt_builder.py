"""Instruction text for the public chat assistant.

Two variants share the same owner-controlled parts (name, fallback line,
persona lines, owner instructions):

- :func:`build_instructions` -- for spaces with a knowledge index; the
  model must run ``file_search`` before every answer.
- :func:`build_context_instructions` -- for spaces answered from stored
  text chunks; the chunks are embedded in the instructions.

The owner's description is appended last and verbatim, so it overrides
anything above it.
"""

from __future__ import annotations

from knowme.models.space import Space

DEFAULT_OWNER_NAME = "the owner"
DEFAULT_FALLBACK_TEMPLATE = (
    "I don't have that information in the provided documents. "
    "Please reach out to {owner_name} for more details."
)


def fallback_line(space: Space) -> str:
    """The exact sentence the assistant must answer with when the files are silent."""
    if space.fallback_message and space.fallback_message.strip():
        return space.fallback_message.strip()
    return DEFAULT_FALLBACK_TEMPLATE.format(owner_name=space.owner_name or DEFAULT_OWNER_NAME)


def persona_lines(space: Space) -> list[str]:
    lines: list[str] = []
    if space.persona_style:
        lines.append(f"PERSONA STYLE: {space.persona_style}")
    if space.tone:
        lines.append(f"TONE: Respond in a {space.tone} tone.")
    if space.audience:
        lines.append(
            f"AUDIENCE: The audience is {space.audience}. "
            "Adjust your language and explanations accordingly."
        )
    if space.do_not_mention:
        lines.append(
            "DO NOT MENTION: Never discuss or reference the following topics: "
            f"{space.do_not_mention}"
        )
    return lines


def _owner_section(space: Space) -> str:
    if not space.description or not space.description.strip():
        return ""
    return (
        "\n\nOWNER INSTRUCTIONS (these take precedence over everything above):\n"
        f"{space.description.strip()}"
    )


def _persona_section(space: Space) -> str:
    lines = persona_lines(space)
    return ("\n\n" + "\n".join(lines)) if lines else ""


def build_instructions(space: Space) -> str:
    """Instructions for the ``file_search`` answer path."""
    fallback = fallback_line(space)
    return (
        f"You are {space.name}, an assistant that answers questions using only the "
        "knowledge files attached to this conversation."
        f"{_persona_section(space)}\n\n"
        "RULES:\n"
        "1. ALWAYS search the knowledge files before answering. Do this for every "
        "question, including questions about who you are, your name, background, "
        "experience or skills.\n"
        "2. The files may describe a person. When they do, read them as your own "
        "biography and answer in the first person (\"My name is ...\").\n"
        "3. Answer only with information found in the files. Never guess, invent or "
        "rely on outside knowledge.\n"
        "4. Be conversational, concise and helpful.\n"
        "5. If the files do not contain the answer, reply with exactly this sentence "
        f"and nothing else: \"{fallback}\""
        f"{_owner_section(space)}"
    )


def build_context_instructions(space: Space, context: str) -> str:
    """Instructions for the plain-text path, with the document text inline."""
    fallback = fallback_line(space)
    return (
        f"You are {space.name}, a helpful assistant."
        f"{_persona_section(space)}\n\n"
        "DOCUMENT CONTEXT:\n"
        "---DOCUMENTS---\n"
        f"{context}\n"
        "---END DOCUMENTS---\n\n"
        "RULES:\n"
        "1. Answer ONLY based on the document content above.\n"
        "2. For personal questions (name, experience, skills, education), find the "
        "information in the documents and answer as if YOU are that person.\n"
        "3. Be conversational and helpful.\n"
        "4. Never make up information that is not in the documents.\n"
        "5. If the answer is NOT in the documents, reply with exactly this sentence "
        f"and nothing else: \"{fallback}\""
        f"{_owner_section(space)}"
    )
