"""Response normalizer: raw provider text → up to three message strings.

Providers are asked for {"messages": [...]} but routinely wrap it in Markdown
fences, prepend chatter, rename the key, nest JSON inside strings, or ignore
the format entirely. extract_messages copes with all of those.

Rules, in order:
1. Strip code fences. Parse the whole text as JSON, else the first {...} and
   [...] spans, earliest-starting first.
2. A top-level array is the list. An object contributes the array under
   messages / options / results / data, or its only array value, or else
   its message / text / content field as a single message. An object with
   none of those holds no messages.
3. Element strings are trimmed; a string that is itself a JSON object is
   parsed once more and its message / text / content field used. Non-string
   elements use those fields or are serialized.
4. No JSON structure → split on blank lines, keep chunks over 20 chars.
5. Empties dropped, duplicates removed in order, capped at 3. Never padded.

extract_messages is total: it never raises.
"""

import json
import re

MAX_MESSAGES = 3
MIN_PARAGRAPH_CHARS = 20

CONTAINER_KEYS = ("messages", "options", "results", "data")
TEXT_KEYS = ("message", "text", "content")

_FENCE_RE = re.compile(r"```[\w-]*")
_BLANK_LINE_RE = re.compile(r"\n\s*\n")


def extract_messages(raw_text: str | None) -> list[str]:
    """Extract up to three distinct, non-empty messages from raw provider output.

    Args:
        raw_text: Text exactly as returned by a provider.

    Returns:
        0–3 trimmed, distinct strings in the order the provider gave them.
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        return []

    text = _FENCE_RE.sub("", raw_text).strip()

    items = _find_json_items(text)
    if items is None:
        candidates = [chunk.strip() for chunk in _BLANK_LINE_RE.split(text)]
        candidates = [chunk for chunk in candidates if len(chunk) > MIN_PARAGRAPH_CHARS]
    else:
        candidates = [_element_text(item) for item in items]

    return _dedupe(candidates)[:MAX_MESSAGES]


def _find_json_items(text: str) -> list | None:
    """Return the message array hidden in text, or None if there is none."""
    items = _items_from(_try_parse(text))
    if items is not None:
        return items

    spans = []
    for opener, closer in (("{", "}"), ("[", "]")):
        start = text.find(opener)
        end = text.rfind(closer)
        if start != -1 and end > start:
            spans.append((start, text[start : end + 1]))

    for _, span in sorted(spans):
        items = _items_from(_try_parse(span))
        if items is not None:
            return items

    return None


def _try_parse(text: str):
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return None


def _items_from(parsed) -> list | None:
    if isinstance(parsed, list):
        return parsed

    if isinstance(parsed, dict):
        for key in CONTAINER_KEYS:
            value = parsed.get(key)
            if isinstance(value, list):
                return value
        arrays = [value for value in parsed.values() if isinstance(value, list)]
        if len(arrays) == 1:
            return arrays[0]
        field = _text_field(parsed)
        return [field] if field is not None else []

    return None


def _text_field(obj: dict) -> str | None:
    for key in TEXT_KEYS:
        value = obj.get(key)
        if isinstance(value, str):
            return value
    return None


def _element_text(item) -> str:
    if item is None:
        return ""

    if isinstance(item, str):
        value = item.strip()
        if value.startswith("{") and value.endswith("}"):
            nested = _try_parse(value)
            if isinstance(nested, dict):
                field = _text_field(nested)
                if field is not None:
                    return field.strip()
        return value

    if isinstance(item, dict):
        field = _text_field(item)
        if field is not None:
            return field.strip()

    return json.dumps(item, ensure_ascii=False)


def _dedupe(candidates: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for candidate in candidates:
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        result.append(candidate)
    return result
