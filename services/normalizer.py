"""Code normalizer — raw model text → loadable component module.

Pure and deterministic.  Applied once to the fully accumulated model output:

1. Drop markdown fence lines (```` ``` ```` with optional language tag).
2. Trim surrounding whitespace.
3. Cut conversational preamble before the first code-opening token.
4. Reject empty / implausibly short output.
5. Append ``export default Name;`` when the module has no default export.

The default-export patch is textual, not parser-verified.  It never invents
a name: when no capitalized function/const declaration is found the text is
returned unchanged and flagged as export-less.
"""

from __future__ import annotations

import logging
import re

from errors.exceptions import EmptyOutputError
from models.generation import NormalizedComponent

logger = logging.getLogger(__name__)

MIN_COMPONENT_LENGTH = 50

CODE_START_TOKENS = ("import", "function", "const", "export")

# A whole line made of a fence marker, optionally followed by a language tag.
_FENCE_LINE_RE = re.compile(r"^[ \t]*`{3,}[ \t]*[\w+#.-]*[ \t]*$\n?", re.MULTILINE)
# Fences glued to the very start/end of the text (e.g. "```tsx import ..." or "};```").
_LEADING_FENCE_RE = re.compile(r"\A\s*`{3,}[\w+#.-]*[ \t]*")
_TRAILING_FENCE_RE = re.compile(r"[ \t]*`{3,}\s*\Z")

_TOKEN_ALTERNATION = "|".join(CODE_START_TOKENS)
# Token opening a top-level statement: first non-blank word of a line.
_STATEMENT_START_RE = re.compile(rf"^[ \t]*({_TOKEN_ALTERNATION})\b", re.MULTILINE)
# Token anywhere, whole word.
_TOKEN_RE = re.compile(rf"\b({_TOKEN_ALTERNATION})\b")

_DEFAULT_EXPORT_RE = re.compile(r"\bexport\s+default\b")
_FUNCTION_NAME_RE = re.compile(r"\bfunction\s+([A-Z]\w*)")
_CONST_NAME_RE = re.compile(r"\bconst\s+([A-Z]\w*)\s*(?::[^=]+)?=")


def strip_fences(text: str) -> str:
    """Remove every fence-marker line plus fences glued to either end.

    CRLF line endings are folded to ``\\n`` first so fence lines always match.
    """
    text = text.replace("\r\n", "\n")
    text = _FENCE_LINE_RE.sub("", text)
    text = _LEADING_FENCE_RE.sub("", text)
    return _TRAILING_FENCE_RE.sub("", text)


def find_code_start(text: str) -> int:
    """Offset of the earliest code-opening token, or ``-1`` if none.

    Tokens that begin a line win; a token in the middle of a line is only
    used when no line starts with one (e.g. ``Sure! import React ...``).
    """
    match = _STATEMENT_START_RE.search(text)
    if match:
        return match.start(1)
    match = _TOKEN_RE.search(text)
    return match.start() if match else -1


def find_component_name(text: str) -> str | None:
    """Capitalized function name, else capitalized const name, else ``None``."""
    match = _FUNCTION_NAME_RE.search(text) or _CONST_NAME_RE.search(text)
    return match.group(1) if match else None


def has_default_export(text: str) -> bool:
    return _DEFAULT_EXPORT_RE.search(text) is not None


def normalize(raw_text: str, *, min_length: int = MIN_COMPONENT_LENGTH) -> NormalizedComponent:
    """Normalize accumulated model output into a component module.

    Args:
        raw_text: Full text emitted by the model for one generation.
        min_length: Character floor below which the output is considered
            truncated or refused.  A result of exactly this length passes.

    Returns:
        NormalizedComponent.  ``has_default_export`` is ``False`` when no
        export existed and no component name could be discovered.

    Raises:
        EmptyOutputError: Nothing usable remains after cleaning.
    """
    code = strip_fences(raw_text or "").strip()

    start = find_code_start(code)
    if start > 0:
        code = code[start:]

    if not code or len(code) < min_length:
        raise EmptyOutputError(length=len(code))

    if has_default_export(code):
        return NormalizedComponent(
            code=code,
            export_name=find_component_name(code),
            has_default_export=True,
        )

    name = find_component_name(code)
    if name is None:
        logger.warning("Normalized component has no default export and no discoverable name")
        return NormalizedComponent(code=code)

    return NormalizedComponent(
        code=f"{code}\n\nexport default {name};",
        export_name=name,
        has_default_export=True,
        export_synthesized=True,
    )
