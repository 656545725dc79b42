"""Recovery parsing for JSON embedded in language-model responses."""

import re
import json
import logging
from typing import Any, Callable, List, Optional, Tuple

from .core.errors import ValidationError
from .core.logger import ParseFailureLog
from .core.models import ParserConfig
from .models import ParseDiagnostics

logger = logging.getLogger("Podcraft.Parser")

CODE_BLOCK_PATTERN = re.compile(r"```(?:json\b|[\w+-]*[ \t]*\r?\n)?\s*([\s\S]*?)```")
OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")
# Only used for errors that are not json.JSONDecodeError
POSITION_PATTERN = re.compile(r"(?:position|char)\s+(\d+)", re.IGNORECASE)

# Control characters with a short JSON escape letter
ESCAPE_LETTERS = {
    "\t": "t",
    "\n": "n",
    "\r": "r",
    "\b": "b",
    "\f": "f",
}
# Common whitespace, left out of the control character census
ORDINARY_WHITESPACE = {9, 10, 13}


def _is_control(char: str) -> bool:
    return ord(char) <= 31


def _unicode_escape(char: str) -> str:
    return "\\u" + format(ord(char), "04x")


class ResponseParser:
    """
    Extracts structured data from free-form model output.

    Six strategies are tried in order until one parses:
    1. the raw text, 2. the sanitized raw text,
    3. the first fenced code block, 4. the sanitized code block,
    5. the outermost {...} span, 6. the sanitized span.

    Sanitizing escapes raw control characters inside string values. Other
    syntax errors such as trailing commas are not repaired.
    """

    def __init__(self, config: Optional[ParserConfig] = None, failure_log: Optional[ParseFailureLog] = None):
        self.config = config or ParserConfig()
        self.failure_log = failure_log

    @staticmethod
    def sanitize_json_string(json_str: str) -> str:
        """
        Escape control characters that appear inside JSON string values.

        A raw control character inside a string is replaced by its escape
        sequence. A backslash followed by a raw control character is read as
        an attempt to escape that character and gets the matching escape
        letter. Any other escaped character is kept as-is.
        """
        result: List[str] = []
        in_string = False
        escape_next = False
        escaped_count = 0

        for char in json_str:
            if escape_next:
                escape_next = False
                if _is_control(char):
                    letter = ESCAPE_LETTERS.get(char)
                    if letter:
                        result.append(letter)
                    else:
                        # Replace the pending backslash with a full \u escape
                        result.pop()
                        result.append(_unicode_escape(char))
                    escaped_count += 1
                else:
                    result.append(char)
                continue

            if char == "\\" and in_string:
                result.append(char)
                escape_next = True
                continue

            if char == '"':
                in_string = not in_string
                result.append(char)
                continue

            if in_string and _is_control(char):
                letter = ESCAPE_LETTERS.get(char)
                result.append("\\" + letter if letter else _unicode_escape(char))
                escaped_count += 1
            else:
                result.append(char)

        if escaped_count:
            logger.debug(f"JSON string sanitized: {escaped_count} control characters escaped "
                         f"({len(json_str)} -> {sum(len(p) for p in result)} chars)")

        return "".join(result)

    def analyze_parse_error(self, content: str, error: Exception) -> ParseDiagnostics:
        """Locate the failure and list suspicious characters for triage."""
        diagnostics = ParseDiagnostics(error_message=str(error))

        if isinstance(error, json.JSONDecodeError):
            diagnostics.position = error.pos
        else:
            match = POSITION_PATTERN.search(str(error))
            if match:
                diagnostics.position = int(match.group(1))

        position = diagnostics.position
        if position is not None:
            window = self.config.context_window
            start = max(0, position - window)
            end = min(len(content), position + window)
            diagnostics.context = content[start:end]

            if position < len(content):
                char = content[position]
                code = ord(char)
                diagnostics.problematic_char = {
                    "char": char,
                    "char_code": code,
                    "is_control_char": code <= 31,
                    "display_code": f"0x{code:02x}",
                }

        for i, char in enumerate(content[:self.config.control_char_scan_limit]):
            code = ord(char)
            if code <= 31 and code not in ORDINARY_WHITESPACE:
                diagnostics.control_chars_found.append({
                    "position": i,
                    "char_code": code,
                    "display_code": f"0x{code:02x}",
                })

        return diagnostics

    def _strategies(self, content: str) -> List[Tuple[str, Callable[[], str]]]:
        strategies = [
            ("direct parse", lambda: content),
            ("sanitized parse", lambda: self.sanitize_json_string(content)),
        ]

        block_match = CODE_BLOCK_PATTERN.search(content)
        if block_match:
            block = block_match.group(1).strip()
            strategies.append(("code block direct parse", lambda: block))
            strategies.append(("sanitized code block parse", lambda: self.sanitize_json_string(block)))

        object_match = OBJECT_PATTERN.search(content)
        if object_match:
            span = object_match.group(0)
            strategies.append(("object pattern direct parse", lambda: span))
            strategies.append(("sanitized object pattern parse", lambda: self.sanitize_json_string(span)))

        return strategies

    def parse_response(self, content: str, context: str = "json-parser") -> Any:
        """
        Parse JSON from a model response, trying each recovery strategy in turn.

        Args:
            content: Raw response text.
            context: Label used in log messages (e.g. the stage name).

        Returns:
            The parsed JSON value.

        Raises:
            ValidationError: If every strategy fails.
        """
        if not isinstance(content, str):
            raise ValidationError("response", f"Expected response text, got {type(content).__name__}")

        logger.debug(f"[{context}] Attempting to extract JSON from AI response ({len(content)} chars)")

        strategy_errors = []
        last_candidate = content
        last_error: Optional[Exception] = None

        for number, (name, candidate_fn) in enumerate(self._strategies(content), start=1):
            candidate = candidate_fn()
            try:
                data = json.loads(candidate)
            except (json.JSONDecodeError, RecursionError) as e:
                logger.debug(f"[{context}] Strategy {number} failed: {name} ({e})")
                strategy_errors.append(f"{number}. {name}: {e}")
                last_candidate, last_error = candidate, e
                continue

            if number > 1:
                logger.info(f"[{context}] Recovered JSON with strategy {number} ({name})")
            return data

        diagnostics = self.analyze_parse_error(last_candidate, last_error)
        diagnostics.strategy_errors = strategy_errors

        logger.error(
            f"[{context}] All JSON extraction strategies failed ({len(strategy_errors)} attempted, "
            f"{len(content)} chars, position: {diagnostics.position}, "
            f"char: {diagnostics.problematic_char}, context: {diagnostics.context!r}, "
            f"control chars: {diagnostics.control_chars_found[:self.config.control_char_report_limit]})"
        )
        logger.debug(f"[{context}] Response preview: {content[:self.config.preview_chars]!r}")

        message = "Could not extract valid JSON from AI response - all 6 parsing strategies failed"
        if self.failure_log:
            self.failure_log.log(context, content, diagnostics, error=message)

        raise ValidationError("response", message)


def parse_json_code_block(content: str) -> Any:
    """
    Lightweight parse: first code block if present, else the whole text.

    No sanitizing and no fallbacks.

    Raises:
        json.JSONDecodeError: If the selected text is not valid JSON.
    """
    block_match = CODE_BLOCK_PATTERN.search(content)
    if block_match:
        return json.loads(block_match.group(1).strip())
    return json.loads(content)


def sanitize_json_string(json_str: str) -> str:
    return ResponseParser.sanitize_json_string(json_str)


def parse_ai_json_response(content: str, context: str = "json-parser") -> Any:
    return ResponseParser().parse_response(content, context=context)
