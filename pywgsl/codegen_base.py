"""Line code generator — token lines of a kernel function to WGSL lines.

Each source line is translated on its own. Before the token rewrite a line
goes through an ordered list of preprocessing passes:

  array literal   ``= [1, 2]``      → ``= array(1,2)``
  switch          ``switch (x) {``  → ``switch x {``
  namespace       ``Math.sqrt(x)``  → ``sqrt(x)``

Passes are pure functions over a token list, so they compose in any line and
never touch the type map. Type registration happens afterwards, in the
generator, and only in infer mode (first translation); in replay mode
(regeneration) the map is read-only. Both modes emit every declaration with
its type from the map (`var c: f32 = 5;`), so replaying an unchanged map
reproduces the first pass exactly.
"""

from typing import Callable, List, Optional

from .tokenizer import TokenLine, Tokenizer
from .types import Array, F32, U32, TypeDescriptor, VariableTypeMap


DECLARATION_KEYWORDS = {"let": "var", "var": "var", "const": "let"}
DIRECTIVE_TOKENS = ("'use", '"use')
NAMESPACES = ("Math",)
INVOCATION_COMPONENTS = ("x", "y", "z")


class ArrayLiteral(str):
    """A collapsed ``array(...)`` token remembering its heuristic length."""

    def __new__(cls, tokens: TokenLine):
        groups: List[TokenLine] = [[]]
        for tok in tokens:
            if tok == ",":
                groups.append([])
            else:
                groups[-1].append(tok)
        elements = [join_tokens(g) for g in groups if g]
        obj = super().__new__(cls, "array(" + ",".join(elements) + ")")
        obj.length = tokens.count(",") + 1
        return obj


# ── preprocessing passes ─────────────────────────────────────────────────

def _matching(tokens: TokenLine, start: int, opening: str, closing: str) -> int:
    depth = 0
    for i in range(start, len(tokens)):
        if tokens[i] == opening:
            depth += 1
        elif tokens[i] == closing:
            depth -= 1
            if depth == 0:
                return i
    return -1


def array_literal_pass(tokens: TokenLine) -> TokenLine:
    out: TokenLine = []
    i = 0
    while i < len(tokens):
        if tokens[i] == "[" and out and out[-1] == "=":
            end = _matching(tokens, i, "[", "]")
            if end < 0:
                end = len(tokens)
            out.append(ArrayLiteral(tokens[i + 1:end]))
            i = end + 1
            continue
        out.append(tokens[i])
        i += 1
    return out


def legacy_array_literal_pass(tokens: TokenLine) -> TokenLine:
    """Like :func:`array_literal_pass` but the line ends after the literal."""
    for i in range(1, len(tokens)):
        if tokens[i] == "[" and tokens[i - 1] == "=":
            end = tokens.index("]", i) if "]" in tokens[i:] else len(tokens)
            return tokens[:i] + [ArrayLiteral(tokens[i + 1:end])]
    return list(tokens)


def switch_pass(tokens: TokenLine) -> TokenLine:
    out = list(tokens)
    for i, tok in enumerate(out):
        if tok == "switch" and i + 1 < len(out) and out[i + 1] == "(":
            close = _matching(out, i + 1, "(", ")")
            if close > 0:
                del out[close]
                del out[i + 1]
            break
    return out


def legacy_switch_pass(tokens: TokenLine) -> TokenLine:
    """Drops the first ``(`` and ``)`` of the line, wherever they are."""
    if "switch" not in tokens:
        return list(tokens)
    out = list(tokens)
    for paren in ("(", ")"):
        if paren in out:
            out.remove(paren)
    return out


def namespace_pass(tokens: TokenLine) -> TokenLine:
    out: TokenLine = []
    i = 0
    while i < len(tokens):
        if tokens[i] in NAMESPACES and i + 1 < len(tokens) and tokens[i + 1] == ".":
            i += 2
            continue
        out.append(tokens[i])
        i += 1
    return out


LinePass = Callable[[TokenLine], TokenLine]

DEFAULT_PASSES: List[LinePass] = [array_literal_pass, switch_pass, namespace_pass]
LEGACY_PASSES: List[LinePass] = [legacy_array_literal_pass, legacy_switch_pass, namespace_pass]


def preprocess(tokens: TokenLine, passes: List[LinePass]) -> TokenLine:
    for line_pass in passes:
        tokens = line_pass(tokens)
    return tokens


def join_tokens(tokens: TokenLine) -> str:
    """Space-separate tokens, keeping member access (``id.x``) tight."""
    text = ""
    for i, tok in enumerate(tokens):
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None
        if tok == "." or nxt == ".":
            text += tok
        else:
            text += tok + " "
    return text.rstrip()


def _is_invocation_component(rhs: TokenLine) -> bool:
    """``= id.x;`` and friends: a component of the u32 invocation id."""
    if rhs[-1:] == [";"]:
        rhs = rhs[:-1]
    return (len(rhs) == 4 and rhs[0] == "=" and rhs[1] == "id" and rhs[2] == "."
            and rhs[3].rstrip(";") in INVOCATION_COMPONENTS)


# ── generator ────────────────────────────────────────────────────────────

class FunctionCodeGenerator:
    """Translates the token lines of one helper function.

    ``types`` is the function's live VariableTypeMap. In infer mode it is
    extended as declarations are seen; in replay mode it is only read.
    """

    def __init__(self, types: VariableTypeMap, return_type: Optional[TypeDescriptor] = F32,
                 replay: bool = False, legacy: bool = False,
                 tokenizer: Optional[Tokenizer] = None):
        self.types = types
        self.return_type = return_type
        self.replay = replay
        self.passes = LEGACY_PASSES if legacy else DEFAULT_PASSES
        self.tokenizer = tokenizer or Tokenizer()

    def generate(self, lines: List[TokenLine]) -> List[str]:
        return [self.generate_line(line, x) for x, line in enumerate(lines)]

    def generate_line(self, line: TokenLine, x: int) -> str:
        if x == 0:
            return self._gen_declaration(line)
        return self._gen_body_line(line)

    # ── declaration line ─────────────────────────────────────────────────

    def _param_list(self, params: List[str]) -> List[str]:
        return [f"{p}: {self.types[p]}" for p in params]

    def _declaration_head(self, name: str, params: List[str]) -> str:
        return f"fn {name}({', '.join(self._param_list(params))}) -> {self.return_type}"

    def _gen_declaration(self, line: TokenLine) -> str:
        name, params = self.tokenizer.parse_declaration(line)
        head = self._declaration_head(name, params)
        tail = self.tokenizer.declaration_tail(line)
        if not tail:
            return head
        head += " {"
        rest = tail[1:]
        if rest:
            body = self._gen_body_line(rest)
            if body:
                head += " " + body
        return head

    # ── body lines ───────────────────────────────────────────────────────

    def _gen_body_line(self, line: TokenLine) -> str:
        if len(line) == 1:
            return line[0]
        if any(tok in DIRECTIVE_TOKENS for tok in line):
            return ""

        tokens = preprocess(line, self.passes)
        if not self.replay:
            self._register_line_types(tokens)
        return join_tokens(self._rewrite(tokens))

    def _register_line_types(self, tokens: TokenLine):
        line_types = {}
        for i, tok in enumerate(tokens):
            if isinstance(tok, ArrayLiteral) and i >= 2 and tokens[i - 1] == "=":
                line_types[tokens[i - 2]] = Array(F32, tok.length)
        for i, tok in enumerate(tokens[:-1]):
            if tok in DECLARATION_KEYWORDS:
                name = tokens[i + 1]
                if _is_invocation_component(tokens[i + 2:]):
                    line_types.setdefault(name, U32)
                line_types.setdefault(name, F32)
        # The first sighting of a name fixes its type.
        for name, typ in line_types.items():
            self.types.setdefault(name, typ)

    def _rewrite(self, tokens: TokenLine) -> TokenLine:
        out: TokenLine = []
        i = 0
        while i < len(tokens):
            tok = tokens[i]
            keyword = DECLARATION_KEYWORDS.get(tok)
            if keyword is not None and i + 1 < len(tokens):
                name = tokens[i + 1]
                if name in self.types:
                    out.append(f"{keyword} {name}: {self.types[name]}")
                    i += 2
                    continue
                out.append(keyword)
            else:
                out.append(tok)
            i += 1
        return out
