"""Repair cascade for malformed model output.

The model is asked for one bare JSON object, but what comes back is free
text: the object may be wrapped in prose or markdown fences, or be
structurally invalid (unquoted keys, trailing commas, elements separated by
newlines only, stray double quotes inside values, single-quoted strings).

Architecture: ordered stages of pure ``text -> text`` transforms
-----------------------------------------------------------------
Each stage is a named, ordered tuple of transforms.  Transforms inside a
stage are applied cumulatively and the text is parsed after every one; the
first parse whose value also passes schema validation wins.

    1. direct_parse      -- the raw text as-is
    2. strip_wrapping    -- drop code fences, bound the first balanced {...}
    3. normalize         -- (a) missing commas, (b) trailing commas,
                            (c) bare keys, (d) quoting fixes; works on the
                            best text from stage 2
    4. best_effort       -- greedy first-"{" .. last-"}" span of the
                            *original* text, parsed as-is and normalized

Every transform is a module-level function so it can be tested on its own.
Transforms that rewrite structure only touch text outside string literals;
the contents of string values pass through verbatim.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Callable

import structlog

from src.models.study import PartialDocument
from src.services.document_validator import validate_document
from src.utils.errors import MalformedResponseError

logger = structlog.get_logger(logger_name=__name__)

Transform = Callable[[str], str]

_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\r?\n?")
_ADJACENT_CONTAINERS_RE = re.compile(r"([}\]])(\s+)(?=[{\[])")
_VALUE_END_BEFORE_WS_RE = re.compile(r"([}\]]|\d|\btrue|\bfalse|\bnull)(\s+)$")
_OPEN_AFTER_WS_RE = re.compile(r"^(\s+)(?=[{\[])")
_TRAILING_COMMA_RE = re.compile(r",(\s*)(?=[}\]])")
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][\w\-]*)(\s*):")
_SINGLE_QUOTED_RE = re.compile(r"([\[{:,]\s*)'((?:[^'\\\n]|\\.)*)'(?=\s*[,:}\]])")
# A bare JSON number that ends the value; anything else starting with a
# digit ("30 minutes") is text and gets quoted.
_NUMBER_TOKEN = r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?\s*(?:[,}\]\n]|$)"
_BARE_OBJECT_VALUE_RE = re.compile(
    r"(:\s*)(?!(?:true|false|null)\b)(?!" + _NUMBER_TOKEN + r")"
    r"([A-Za-z0-9][^,{}\[\]\n]*?)(\s*)(?=[,}\]\n])"
)
_BARE_ARRAY_ITEM_RE = re.compile(
    r"([\[,]\s*)(?!(?:true|false|null)\b)(?!" + _NUMBER_TOKEN + r")"
    r"([A-Za-z0-9][^,{}\[\]\n:]*?)(\s*)(?=[,\]])"
)
_CLOSING_FOLLOWERS = frozenset({"", ",", "}", "]", ":"})


# ---------------------------------------------------------------------------
# String-literal aware helpers
# ---------------------------------------------------------------------------


def _split_literals(text: str) -> list[tuple[bool, str]]:
    """Split *text* into ``(is_string_literal, segment)`` pairs.

    String segments include their double quotes.  An unterminated string
    runs to the end of the text.
    """
    segments: list[tuple[bool, str]] = []
    seg_start = 0
    in_string = False
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if in_string:
            if ch == "\\":
                i += 2
                continue
            if ch == '"':
                segments.append((True, text[seg_start : i + 1]))
                seg_start = i + 1
                in_string = False
        elif ch == '"':
            if i > seg_start:
                segments.append((False, text[seg_start:i]))
            seg_start = i
            in_string = True
        i += 1
    if seg_start < n:
        segments.append((in_string, text[seg_start:]))
    return segments


def _map_structure(text: str, fn: Transform) -> str:
    """Apply *fn* to every segment of *text* outside string literals."""
    return "".join(seg if is_str else fn(seg) for is_str, seg in _split_literals(text))


# ---------------------------------------------------------------------------
# Stage 2 transforms
# ---------------------------------------------------------------------------


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers (```` ``` ```` / ```` ```json ````)."""
    return _FENCE_RE.sub("", text).strip()


def extract_balanced_object(text: str) -> str:
    """Return the first ``{`` up to its matching ``}``, dropping surrounding prose.

    Braces inside string literals are ignored.  If the object never closes,
    the span runs to the last ``}`` in the text.  Text without ``{`` is
    returned unchanged.
    """
    start = text.find("{")
    if start == -1:
        return text
    depth = 0
    in_string = False
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if in_string:
            if ch == "\\":
                i += 2
                continue
            if ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
        i += 1
    return extract_greedy_object(text)


# ---------------------------------------------------------------------------
# Stage 3 transforms
# ---------------------------------------------------------------------------


def insert_missing_commas(text: str) -> str:
    """Insert commas between adjacent elements separated only by whitespace.

    Handles ``}\\n{``, ``]\\n[``, ``"a"\\n"b"``, ``"a"\\n{`` and a closing
    bracket, number or literal followed by whitespace and a string.
    """
    segments = _split_literals(text)
    out: list[str] = []
    for i, (is_str, seg) in enumerate(segments):
        if is_str:
            out.append(seg)
            continue
        prev_is_str = i > 0 and segments[i - 1][0]
        next_is_str = i + 1 < len(segments) and segments[i + 1][0]

        seg = _ADJACENT_CONTAINERS_RE.sub(r"\1,\2", seg)
        if prev_is_str and next_is_str and seg and not seg.strip():
            seg = "," + seg
        elif prev_is_str:
            seg = _OPEN_AFTER_WS_RE.sub(r",\1", seg)
        if next_is_str and seg.strip():
            seg = _VALUE_END_BEFORE_WS_RE.sub(r"\1,\2", seg)
        out.append(seg)
    return "".join(out)


def strip_trailing_commas(text: str) -> str:
    """Remove commas directly before ``}`` or ``]``."""
    return _map_structure(text, lambda seg: _TRAILING_COMMA_RE.sub(r"\1", seg))


def quote_bare_keys(text: str) -> str:
    """Quote identifier-like property names: ``{question: ...}`` -> ``{"question": ...}``."""
    return _map_structure(text, lambda seg: _BARE_KEY_RE.sub(r'\1"\2"\3:', seg))


def escape_stray_quotes(text: str) -> str:
    """Replace unescaped double quotes *inside* string values with apostrophes.

    A quote inside a string is treated as the closing quote only when the
    next non-whitespace character could follow a JSON string (``,`` ``:``
    ``}`` ``]`` or end of text); otherwise it is part of the value.
    """
    out: list[str] = []
    in_string = False
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if not in_string:
            if ch == '"':
                in_string = True
            out.append(ch)
            i += 1
            continue
        if ch == "\\":
            out.append(text[i : i + 2])
            i += 2
            continue
        if ch == '"':
            j = i + 1
            while j < n and text[j].isspace():
                j += 1
            follower = text[j] if j < n else ""
            if follower in _CLOSING_FOLLOWERS:
                in_string = False
                out.append(ch)
            else:
                out.append("'")
            i += 1
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def convert_single_quotes(text: str) -> str:
    """Turn single-quoted keys and values into double-quoted strings."""

    def _replace(match: re.Match[str]) -> str:
        inner = match.group(2).replace('"', '\\"')
        return f'{match.group(1)}"{inner}"'

    return _map_structure(text, lambda seg: _SINGLE_QUOTED_RE.sub(_replace, seg))


def quote_bare_values(text: str) -> str:
    """Quote unquoted word-like scalar values in objects and arrays.

    Complete numbers and the ``true`` / ``false`` / ``null`` literals are
    left alone; ``30 minutes`` is quoted even though it starts with a digit.
    """

    def _fix(seg: str) -> str:
        seg = _BARE_OBJECT_VALUE_RE.sub(r'\1"\2"\3', seg)
        return _BARE_ARRAY_ITEM_RE.sub(r'\1"\2"\3', seg)

    return _map_structure(text, _fix)


# ---------------------------------------------------------------------------
# Stage 4 transforms
# ---------------------------------------------------------------------------


def extract_greedy_object(text: str) -> str:
    """Return the span from the first ``{`` to the last ``}`` of *text*."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return text
    return text[start : end + 1]


# ---------------------------------------------------------------------------
# Cascade
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RepairStage:
    """A named, ordered group of transforms.

    ``from_original`` stages restart from the raw model output instead of
    the best text produced by the previous stage.
    """

    name: str
    transforms: tuple[Transform, ...]
    from_original: bool = False


_NORMALIZERS: tuple[Transform, ...] = (
    insert_missing_commas,
    strip_trailing_commas,
    quote_bare_keys,
    escape_stray_quotes,
    convert_single_quotes,
    quote_bare_values,
)

DEFAULT_STAGES: tuple[RepairStage, ...] = (
    RepairStage("direct_parse", (str.strip,)),
    RepairStage("strip_wrapping", (strip_code_fences, extract_balanced_object)),
    RepairStage("normalize", _NORMALIZERS),
    RepairStage("best_effort", (extract_greedy_object, *_NORMALIZERS), from_original=True),
)


class ResponseRepairer:
    """Recovers a schema-conformant :class:`PartialDocument` from model output.

    Parameters
    ----------
    validator:
        Turns a parsed JSON value into a document, raising
        :class:`MalformedResponseError` when the value is not one.  This is
        the pipeline's target schema.
    stages:
        Ordered repair stages; defaults to :data:`DEFAULT_STAGES`.
    """

    def __init__(
        self,
        validator: Callable[[Any], PartialDocument] = validate_document,
        stages: tuple[RepairStage, ...] = DEFAULT_STAGES,
    ) -> None:
        self._validator = validator
        self._stages = stages

    def repair(self, raw_text: str) -> PartialDocument:
        """Return the first valid document any stage recovers from *raw_text*.

        Raises
        ------
        MalformedResponseError
            If every stage fails.
        """
        document, _stage = self.repair_with_stage(raw_text)
        return document

    def repair_with_stage(self, raw_text: str) -> tuple[PartialDocument, str]:
        """Like :meth:`repair` but also return the name of the winning stage."""
        original = raw_text or ""
        if not original.strip():
            raise MalformedResponseError(message="Empty response from model")

        best = original
        for stage in self._stages:
            candidate = original if stage.from_original else best
            for transform in stage.transforms:
                candidate = transform(candidate)
                document = self._attempt(candidate)
                if document is not None:
                    if stage is not self._stages[0]:
                        logger.info(
                            "response_repaired",
                            stage=stage.name,
                            transform=getattr(transform, "__name__", "transform"),
                        )
                    return document, stage.name
            if not stage.from_original:
                best = candidate

        logger.warning("response_repair_failed", preview=original[:200])
        raise MalformedResponseError(
            message=f"Model returned unparseable output. First 200 chars: {original[:200]!r}"
        )

    def _attempt(self, text: str) -> PartialDocument | None:
        # ValueError covers JSONDecodeError and the int-digit limit;
        # RecursionError comes from very deep nesting.
        try:
            parsed = json.loads(text, strict=False)
        except (ValueError, RecursionError):
            return None
        try:
            return self._validator(parsed)
        except MalformedResponseError:
            return None
