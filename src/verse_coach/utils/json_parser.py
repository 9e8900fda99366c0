"""Lenient JSON extraction for LLM responses."""

from __future__ import annotations

import json


def extract_json(text: str) -> dict | list:
    """Extract JSON from an LLM response.

    Tries, in order: the whole text, the text with ```json fences removed,
    the outermost ``{...}`` object and the outermost ``[...]`` array.
    """
    text = (text or "").strip()
    if not text:
        raise ValueError("Empty response, no JSON to extract")

    candidates = [text]
    unfenced = _strip_code_fences(text)
    if unfenced != text:
        candidates.append(unfenced)

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            pass

    for candidate in candidates:
        for open_char, close_char in (("{", "}"), ("[", "]")):
            result = _slice_between(candidate, open_char, close_char)
            if result is not None:
                return result

    raise ValueError(f"Could not extract JSON from text: {text[:200]}...")


def _strip_code_fences(text: str) -> str:
    lines = text.split("\n")
    if lines and lines[0].strip().startswith("```"):
        lines = lines[1:]
    while lines and lines[-1].strip() in ("```", ""):
        lines = lines[:-1]
    return "\n".join(lines).strip()


def _slice_between(text: str, open_char: str, close_char: str) -> dict | list | None:
    start = text.find(open_char)
    end = text.rfind(close_char)
    if start == -1 or end <= start:
        return None
    try:
        return json.loads(text[start : end + 1])
    except json.JSONDecodeError:
        return None
