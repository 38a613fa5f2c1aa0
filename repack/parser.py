"""
TypeScript module parser.

Splits a TypeScript source file into a flat declaration-level tree: import
and export declarations that carry a module specifier become
``ModuleDeclaration`` nodes, and all other text is kept verbatim as
``Trivia``. Printing an unmodified tree reproduces the input exactly.

The scanner knows enough of the lexical grammar (comments, string and
template literals, regular expression literals, brace nesting) to never
mistake text inside those for a declaration.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union


QUOTES = "'\""

# Identifiers that, directly after ``export``, mark a local declaration
# rather than one with a module specifier. Later in a clause they are bindings.
NON_CLAUSE_WORDS = {
    "import", "export", "default", "class", "function", "const", "let", "var",
    "interface", "enum", "declare", "abstract", "namespace", "module", "async",
    "require",
}

# After these keywords a ``/`` starts a regular expression, not a division.
REGEX_PRECEDING_WORDS = {
    "return", "typeof", "instanceof", "in", "of", "new", "delete", "void",
    "throw", "case", "do", "else", "yield", "await",
}


@dataclass(frozen=True)
class Trivia:
    """Source text outside any module declaration."""

    text: str

    def print(self) -> str:
        return self.text


@dataclass(frozen=True)
class StringLiteral:
    """
    A quoted module specifier.
    
    ``raw`` is the exact text between the quotes as it appeared in the
    source; literals created by a rewrite have ``raw=None`` and are escaped
    when printed.
    """

    value: str
    quote: str = "'"
    raw: Optional[str] = None

    def print(self) -> str:
        if self.raw is not None:
            body = self.raw
        else:
            body = self.value.replace("\\", "\\\\").replace(self.quote, "\\" + self.quote)
        return f"{self.quote}{body}{self.quote}"


@dataclass(frozen=True)
class ModuleDeclaration:
    """
    An import or export declaration with a module specifier.
    
    ``head`` is the declaration text from the keyword up to the opening quote
    of the specifier (bindings, ``type`` markers, ``* as`` forms). Text after
    the specifier (``;``, import attributes) stays in the following Trivia.
    """

    keyword: str
    head: str
    specifier: StringLiteral
    line: int

    def print(self) -> str:
        return self.head + self.specifier.print()


Node = Union[Trivia, ModuleDeclaration]


@dataclass(frozen=True)
class ModuleTree:
    """Parsed file: an ordered sequence of nodes."""

    nodes: Tuple[Node, ...]

    @property
    def declarations(self) -> List[ModuleDeclaration]:
        return [n for n in self.nodes if isinstance(n, ModuleDeclaration)]

    def print(self) -> str:
        """Re-serialize the tree to source text."""
        return "".join(node.print() for node in self.nodes)


def _is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch in "_$" or ord(ch) > 127


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch in "_$" or ord(ch) > 127


class _Scanner:
    """Character-level helpers over one source text."""

    def __init__(self, text: str):
        self.text = text
        self.length = len(text)

    def char(self, i: int) -> str:
        return self.text[i] if i < self.length else ""

    def skip_trivia(self, i: int) -> int:
        """Skip whitespace and comments."""
        text = self.text
        while i < self.length:
            ch = text[i]
            if ch.isspace():
                i += 1
            elif text.startswith("//", i):
                end = text.find("\n", i)
                i = self.length if end == -1 else end + 1
            elif text.startswith("/*", i):
                end = text.find("*/", i + 2)
                i = self.length if end == -1 else end + 2
            else:
                break
        return i

    def read_ident(self, i: int) -> int:
        while i < self.length and _is_ident_char(self.text[i]):
            i += 1
        return i

    def string_end(self, i: int) -> Optional[int]:
        """Index after the quoted string starting at ``i``, None if unterminated."""
        quote = self.text[i]
        i += 1
        while i < self.length:
            ch = self.text[i]
            if ch == "\\":
                i += 2
            elif ch == quote:
                return i + 1
            elif ch == "\n":
                return None
            else:
                i += 1
        return None

    def skip_string(self, i: int) -> int:
        end = self.string_end(i)
        if end is not None:
            return end
        # Unterminated strings end at the line break.
        newline = self.text.find("\n", i)
        return self.length if newline == -1 else newline

    def skip_template(self, i: int) -> int:
        """Skip a template literal starting at the backtick at ``i``."""
        i += 1
        while i < self.length:
            ch = self.text[i]
            if ch == "\\":
                i += 2
            elif ch == "`":
                return i + 1
            elif self.text.startswith("${", i):
                i = self.skip_code(i + 2, until_close=True)
            else:
                i += 1
        return self.length

    def skip_regex(self, i: int) -> Optional[int]:
        """Skip a regex literal at ``i``; None if it is not one on this line."""
        in_class = False
        j = i + 1
        while j < self.length:
            ch = self.text[j]
            if ch == "\n":
                return None
            if ch == "\\":
                j += 2
                continue
            if in_class:
                if ch == "]":
                    in_class = False
            elif ch == "[":
                in_class = True
            elif ch == "/":
                return self.read_ident(j + 1)
            j += 1
        return None

    def skip_braces(self, i: int) -> int:
        """Skip a ``{ ... }`` group starting at ``i``."""
        return self.skip_code(i + 1, until_close=True)

    def skip_code(self, i: int, until_close: bool = False, found: Optional[list] = None) -> int:
        """
        Scan code from ``i``.
        
        With ``until_close`` the scan stops after the ``}`` that closes the
        current nesting level. When ``found`` is a list, every module
        declaration encountered is appended to it as a span tuple.
        """
        text = self.text
        depth = 0
        prev = ""  # last significant token: punctuation char, identifier or literal marker
        while i < self.length:
            ch = text[i]
            if ch.isspace():
                i += 1
            elif text.startswith("//", i) or text.startswith("/*", i):
                i = self.skip_trivia(i)
            elif ch in QUOTES:
                i = self.skip_string(i)
                prev = '"'
            elif ch == "`":
                i = self.skip_template(i)
                prev = '"'
            elif ch == "/":
                end = None
                if _regex_allowed(prev):
                    end = self.skip_regex(i)
                if end is None:
                    i += 1
                    prev = "/"
                else:
                    i = end
                    prev = '"'
            elif _is_ident_start(ch):
                end = self.read_ident(i)
                word = text[i:end]
                if found is not None and word in ("import", "export") and prev != ".":
                    span = _match_declaration(self, i, end, word)
                    if span is not None:
                        found.append(span)
                        i = span[2]
                        prev = '"'
                        continue
                i = end
                prev = word
            elif ch.isdigit():
                i = self.read_ident(i + 1)
                prev = "0"
            elif ch == "{":
                depth += 1
                i += 1
                prev = "{"
            elif ch == "}":
                i += 1
                if depth == 0 and until_close:
                    return i
                depth -= 1
                prev = "}"
            else:
                i += 1
                prev = ch
        return self.length


def _regex_allowed(prev: str) -> bool:
    if not prev:
        return True
    if _is_ident_start(prev[0]):
        return prev in REGEX_PRECEDING_WORDS
    return prev not in (")", "]", '"', "0")


def _match_declaration(
    scanner: _Scanner,
    start: int,
    keyword_end: int,
    keyword: str,
) -> Optional[Tuple[int, int, int, str]]:
    """
    Match an import/export declaration whose keyword spans [start, keyword_end).
    
    Returns:
        ``(start, literal_start, literal_end, keyword)`` for declarations that
        carry a module specifier, None otherwise.
    """
    i = scanner.skip_trivia(keyword_end)
    ch = scanner.char(i)
    
    if keyword == "import" and ch in QUOTES:
        # Side-effect import: import './polyfill';
        end = scanner.string_end(i)
        return None if end is None else (start, i, end, keyword)
    
    after_braces = False
    tokens = 0
    while i < scanner.length:
        ch = scanner.char(i)
        if ch == "{":
            if after_braces:
                return None
            i = scanner.skip_trivia(scanner.skip_braces(i))
            after_braces = True
        elif ch in "*,":
            if after_braces:
                return None
            i = scanner.skip_trivia(i + 1)
        elif ch in QUOTES:
            # Arbitrary module namespace name: export * as "name" from '...'
            if after_braces:
                return None
            i = scanner.skip_trivia(scanner.skip_string(i))
        elif _is_ident_start(ch):
            end = scanner.read_ident(i)
            word = scanner.text[i:end]
            if tokens == 0 and keyword == "export" and word in NON_CLAUSE_WORDS:
                return None
            nxt = scanner.skip_trivia(end)
            if word == "from" and tokens > 0 and scanner.char(nxt) in QUOTES:
                end = scanner.string_end(nxt)
                return None if end is None else (start, nxt, end, keyword)
            if after_braces:
                return None
            i = nxt
        else:
            # '(' dynamic import, '.' import.meta, '=' import-equals, ';' local export, ...
            return None
        tokens += 1
    return None


def parse_module(text: str) -> ModuleTree:
    """
    Parse TypeScript source text into a ModuleTree.
    
    Args:
        text: Full source text of a ``.ts`` file.
    
    Returns:
        A tree whose printed form equals ``text``.
    """
    scanner = _Scanner(text)
    spans: List[Tuple[int, int, int, str]] = []
    scanner.skip_code(0, found=spans)
    
    nodes: List[Node] = []
    cursor = 0
    for start, lit_start, lit_end, keyword in spans:
        if start > cursor:
            nodes.append(Trivia(text[cursor:start]))
        quote = text[lit_start]
        raw = text[lit_start + 1:lit_end - 1]
        literal = StringLiteral(value=_unescape(raw), quote=quote, raw=raw)
        head = text[start:lit_start]
        line = text.count("\n", 0, lit_start) + 1
        nodes.append(ModuleDeclaration(keyword=keyword, head=head, specifier=literal, line=line))
        cursor = lit_end
    if cursor < len(text):
        nodes.append(Trivia(text[cursor:]))
    
    return ModuleTree(tuple(nodes))


def _unescape(raw: str) -> str:
    """Decode the simple escapes that can appear in a module specifier."""
    if "\\" not in raw:
        return raw
    out = []
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch == "\\" and i + 1 < len(raw):
            out.append(raw[i + 1])
            i += 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)
