"""
Prompt construction for the understanding service.

Pure string assembly, no I/O. The reply format is pinned to the exact keys of
ModelAssessment so the parser has one well-defined shape to look for.
"""

from __future__ import annotations

# ─── Prompt Template ─────────────────────────────────────────────────

PROMPT_TEMPLATE = """\
You are a document verification assistant for a rental reference platform.
Decide whether the document below is a legitimate residential rental or lease
agreement, and whether the two people named below appear in it.

CLAIMED NAMES:
- Property owner / landlord: {owner}
- Occupant / tenant: {occupant}

RULES:
1. A name matches if it refers to the same person in the document, allowing
   for minor variation: middle names or initials present or missing,
   abbreviations, nicknames of the same given name, and different ordering.
2. Do not guess. If a name cannot be found in the document, it does not match.
3. confidence_score is an integer from 0 to 100 expressing how confident you
   are that this is a genuine, readable lease agreement.
4. extracted_owner_name and extracted_occupant_name are the names exactly as
   written in the document, or null if none is present.

DOCUMENT TEXT (verbatim, between the markers):
<<<BEGIN DOCUMENT>>>
{text}
<<<END DOCUMENT>>>

Reply with ONLY a single JSON object with exactly these keys and no other
text, explanation or markdown:
{{
    "is_lease_document": true or false,
    "owner_name_match": true or false,
    "occupant_name_match": true or false,
    "confidence_score": integer 0-100,
    "extracted_owner_name": "string or null",
    "extracted_occupant_name": "string or null",
    "document_type_label": "short description of the document type"
}}
"""


def build_prompt(text: str, claimed_owner_name: str, claimed_occupant_name: str) -> str:
    """Combine extracted text and the claimed names into one instruction."""
    return PROMPT_TEMPLATE.format(
        owner=claimed_owner_name.strip(),
        occupant=claimed_occupant_name.strip(),
        text=text,
    )
