"""Tokenizer — splits kernel source text into line-structured token lists.

No grammar: lines are split on whitespace, then at ``( ) [ ] , .`` with the
delimiters kept as tokens. Good enough for the restricted numeric kernel
subset; replace the class to plug in a real lexer.
"""

import re
import textwrap
from typing import List, Tuple

from .errors import MalformedSource


TokenLine = List[str]

_DELIMITERS = re.compile(r"([()\[\],.])")
_FUNCTION_START = re.compile(r"^function\b")


class Tokenizer:

    def split_line(self, line: str) -> TokenLine:
        tokens: TokenLine = []
        for word in line.split():
            for part in _DELIMITERS.split(word):
                part = part.strip()
                if part:
                    tokens.append(part)
        return tokens

    def tokenize(self, text: str) -> List[TokenLine]:
        lines = [self.split_line(line) for line in textwrap.dedent(text).splitlines()]
        return [line for line in lines if line]

    # ── declaration ──────────────────────────────────────────────────────

    def parse_declaration(self, tokens: TokenLine) -> Tuple[str, List[str]]:
        """Return ``(name, params)`` for a ``function name(a, b) {`` line."""
        if len(tokens) < 2 or tokens[0] != "function":
            raise MalformedSource(
                f"Expected a 'function <name>(...)' declaration, got: {' '.join(tokens)!r}"
            )
        if len(tokens) < 3 or tokens[2] != "(":
            raise MalformedSource(f"Missing '(' after function name {tokens[1]!r}")
        if ")" not in tokens:
            raise MalformedSource(
                f"Declaration of {tokens[1]!r} has no closing parenthesis"
            )
        close = tokens.index(")")
        params = [t for t in tokens[3:close] if t != ","]
        return tokens[1], params

    def declaration_tail(self, tokens: TokenLine) -> TokenLine:
        """Tokens following the parameter list's closing parenthesis."""
        return tokens[tokens.index(")") + 1:]

    # ── validation ───────────────────────────────────────────────────────

    def validate(self, lines: List[TokenLine]):
        if not lines:
            raise MalformedSource("Function source is empty")
        self.parse_declaration(lines[0])
        tail = self.declaration_tail(lines[0])
        if tail and tail[0] != "{":
            raise MalformedSource(
                f"Unexpected {tail[0]!r} after the parameter list of {lines[0][1]!r}"
            )
        for number, line in enumerate(lines[1:], start=1):
            for opening, closing in (("(", ")"), ("[", "]")):
                if line.count(opening) != line.count(closing):
                    raise MalformedSource(
                        f"Unbalanced '{opening}{closing}' on line {number}: "
                        f"{' '.join(line)!r}"
                    )

    # ── multi-function files ─────────────────────────────────────────────

    def split_functions(self, text: str) -> List[str]:
        """Cut a source file into one text chunk per ``function`` definition."""
        chunks: List[List[str]] = []
        for line in textwrap.dedent(text).splitlines():
            if _FUNCTION_START.match(line):
                chunks.append([line])
            elif chunks:
                chunks[-1].append(line)
        return ["\n".join(chunk).rstrip() for chunk in chunks]
