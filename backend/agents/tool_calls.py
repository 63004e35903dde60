"""
Tool-call grammar parser.

Models request tools in plain text:

    TOOL_CALL: read_file
    ARGUMENTS: {"path": "src/app.py"}

The parser walks the text line by line. A marker pair whose arguments are
not a JSON object is dropped with a log line and scanning resumes after it,
so one malformed block never hides the calls that follow. Prose before,
between and after calls is ignored.
"""

import json
import logging
from dataclasses import dataclass, field

from config import ARGUMENTS_MARKER, TOOL_CALL_MARKER

logger = logging.getLogger(__name__)

MAX_ARGUMENT_CHARS = 20_000

_decoder = json.JSONDecoder()


@dataclass
class ToolCall:
    name: str
    args: dict = field(default_factory=dict)


def _clean_name(raw: str) -> str:
    token = raw.strip().split()[0] if raw.strip() else ""
    return token.strip("`*\"'")


def _decode_object(text: str):
    """Decode the first JSON value in text. Returns (obj, chars consumed) or (None, 0)."""
    start = text.find("{")
    if start == -1 or text[:start].strip():
        return None, 0
    try:
        obj, end = _decoder.raw_decode(text[:MAX_ARGUMENT_CHARS], start)
    except json.JSONDecodeError:
        return None, 0
    if not isinstance(obj, dict):
        return None, 0
    return obj, end


def parse_tool_calls(text: str) -> list[ToolCall]:
    """Extract every well-formed TOOL_CALL/ARGUMENTS pair from model output."""
    calls: list[ToolCall] = []
    lines = (text or "").splitlines()
    i = 0
    while i < len(lines):
        line = lines[i]
        marker_at = line.find(TOOL_CALL_MARKER)
        if marker_at == -1:
            i += 1
            continue

        after = line[marker_at + len(TOOL_CALL_MARKER):]
        inline_args = after.find(ARGUMENTS_MARKER)
        if inline_args != -1:
            name = _clean_name(after[:inline_args])
            args_line, args_index = after[inline_args:], i
        else:
            name = _clean_name(after)
            args_index = i + 1
            while args_index < len(lines) and not lines[args_index].strip():
                args_index += 1
            args_line = lines[args_index].strip() if args_index < len(lines) else ""

        if not name or not args_line.startswith(ARGUMENTS_MARKER):
            logger.warning("Dropping tool call without name/ARGUMENTS near line %d", i + 1)
            i += 1
            continue

        head = args_line[len(ARGUMENTS_MARKER):]
        remainder = "\n".join([head] + lines[args_index + 1:])
        args, consumed = _decode_object(remainder)
        if args is None:
            logger.warning("Dropping tool call '%s': arguments are not a JSON object", name)
            i = args_index + 1
            continue

        calls.append(ToolCall(name=name, args=args))
        i = args_index + 1 + remainder[:consumed].count("\n")
    return calls
