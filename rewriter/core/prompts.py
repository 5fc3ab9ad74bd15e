"""Instruction payload assembly for the remote rewriting service."""
from __future__ import annotations

from dataclasses import dataclass

from rewriter.domain import ReferenceContext

SECTION_RULE = "=" * 79
CONTEXT_WINDOW_TOKENS = 180_000
OUTPUT_BUFFER_TOKENS = 8192

PREAMBLE = """You are a documentation converter. Your task is to rewrite legacy documentation files into the target format described by the reference documents below.

IMPORTANT INSTRUCTIONS:
- Output ONLY the rewritten document content
- Do NOT include any preamble, explanation, or commentary
- Do NOT wrap the output in markdown code fences
- Do NOT say "Here is the rewritten document" or similar phrases
- Preserve the spirit and information of the original while applying the new format
- Follow the exact structure and marker system defined in the reference documents
"""

OUTPUT_REQUIREMENTS = """1. Apply the markers and conventions of the primary reference
2. Structure the document according to the conversion guide, when one is provided
3. Maintain all essential information from the source document
4. Output ONLY the final rewritten document with no additional text
"""

# slot -> (heading, tag)
SLOT_SECTIONS: dict[str, tuple[str, str]] = {
    "primary": ("FORMAT RULES REFERENCE (Primary formatting guide)", "format_rules"),
    "guide": ("DOCUMENT CONVERSION GUIDE (Conversion instructions)", "conversion_guide"),
    "supplementary": ("SUPPLEMENTARY NOTES (Extra context)", "supplementary_notes"),
}


def _section(heading: str, body: str) -> str:
    return f"{SECTION_RULE}\n{heading}\n{SECTION_RULE}\n\n{body}\n"


def build_system_prompt(references: ReferenceContext) -> str:
    parts = [PREAMBLE]
    for slot in ReferenceContext.SLOTS:
        reference = references.get(slot)
        if reference is None:
            continue
        heading, tag = SLOT_SECTIONS[slot]
        parts.append(_section(heading, f"<{tag}>\n{reference.content}\n</{tag}>\n"))
    parts.append(_section("OUTPUT REQUIREMENTS", OUTPUT_REQUIREMENTS))
    return "\n".join(parts)


def build_user_message(filename: str, content: str) -> str:
    return (
        "Rewrite this documentation file following the rules and guide provided.\n\n"
        f"Filename: {filename}\n\n"
        f"<source_document>\n{content}\n</source_document>"
    )


def estimate_tokens(text: str) -> int:
    """Rough token estimate at about four characters per token."""

    return -(-len(text) // 4)


@dataclass(frozen=True, slots=True)
class ContextEstimate:
    fits: bool
    estimated_tokens: int


def check_context_limit(
    system_prompt: str,
    user_message: str,
    max_tokens: int = CONTEXT_WINDOW_TOKENS,
) -> ContextEstimate:
    total = estimate_tokens(system_prompt) + estimate_tokens(user_message) + OUTPUT_BUFFER_TOKENS
    return ContextEstimate(fits=total < max_tokens, estimated_tokens=total)
