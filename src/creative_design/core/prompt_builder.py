"""Enhanced prompt compilation for creative design generation.

The outbound prompt is composed from fixed boilerplate sections wrapped
around the user's literal request, with an optional style line in between.

Template Structure::

    [Fixed: instruction preamble]

    User request: [User Prompt]
    Design style: [Style Description]        (only when a style is given)

    Design requirements:
    - [Fixed requirement 1]
    - ...

Compilation is pure string construction: identical inputs always produce a
byte-identical prompt.

Usage
-----
::

    enhanced = build_enhanced_prompt("a modern poster", DesignStyle.WATERCOLOR)
"""

from __future__ import annotations

from creative_design.core.models import STYLE_DESCRIPTIONS, DesignStyle

# ---------------------------------------------------------------------------
# Fixed boilerplate sections.
# The preamble and requirement list frame every request so the backend treats
# the screenshot as the subject of a cultural product design.
# ---------------------------------------------------------------------------

_PREAMBLE = (
    "Based on the provided artifact image, create a cultural and creative product design."
)

_REQUIREMENTS_HEADER = "Design requirements:"

_REQUIREMENTS = (
    "Preserve the core features and cultural elements of the artifact",
    "Suitable for cultural products (posters, postcards, T-shirt prints, etc.)",
    "Harmonious colours and a pleasing composition",
    "Modern aesthetics with commercial value",
    "High quality, professional design",
    "Blend traditional culture with modern design ideas",
)


def build_enhanced_prompt(user_prompt: str, style: DesignStyle | None = None) -> str:
    """Compile the outbound prompt for one generation.

    Args:
        user_prompt: The user's request, included literally.
        style: Optional style; its description is looked up in
            :data:`STYLE_DESCRIPTIONS`.  ``None`` omits the style line.

    Returns:
        The enhanced prompt, sections separated by blank lines.
    """
    request_lines = [f"User request: {user_prompt}"]
    if style is not None:
        request_lines.append(f"Design style: {STYLE_DESCRIPTIONS[DesignStyle(style)]}")

    requirement_lines = [_REQUIREMENTS_HEADER]
    requirement_lines.extend(f"- {requirement}" for requirement in _REQUIREMENTS)

    sections = [
        _PREAMBLE,
        "\n".join(request_lines),
        "\n".join(requirement_lines),
    ]
    return "\n\n".join(sections)
