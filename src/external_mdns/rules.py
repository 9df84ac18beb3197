"""Parser for Traefik router rule expressions.

Rules are boolean expressions over a fixed set of matchers, for example::

    Host(`app.local`) && (PathPrefix(`/api`) || !Method(`POST`))

The parser produces a small tagged-variant tree: :class:`BinaryComposite`
nodes join two sub-trees with ``and``/``or`` and :class:`Clause` nodes hold a
single matcher call.  Negation is pushed down to the clauses while parsing
(De Morgan), so a composite node is never negated itself.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Tuple, Union

from .exceptions import ParseError

MATCHERS = frozenset(
    {
        "ClientIP",
        "Method",
        "Host",
        "HostRegexp",
        "Path",
        "PathRegexp",
        "PathPrefix",
        "Header",
        "Headers",
        "HeaderRegexp",
        "Query",
        "QueryRegexp",
    }
)

AND = "and"
OR = "or"

MAX_NESTING = 100


@dataclass(frozen=True)
class Clause:
    """A single matcher call such as ``Host(`a.local`)``."""

    matcher: str
    args: Tuple[str, ...]
    negated: bool = False

    def negate(self) -> "Clause":
        return replace(self, negated=not self.negated)


@dataclass(frozen=True)
class BinaryComposite:
    """Two sub-rules joined by ``&&`` (:data:`AND`) or ``||`` (:data:`OR`)."""

    operator: str
    left: "Node"
    right: "Node"

    def negate(self) -> "BinaryComposite":
        # Rebuilt bottom-up with an explicit stack; long chains are deep trees.
        done: List[Node] = []
        stack: List[Tuple[Node, bool]] = [(self, False)]
        while stack:
            node, expanded = stack.pop()
            if isinstance(node, Clause):
                done.append(node.negate())
            elif expanded:
                right = done.pop()
                left = done.pop()
                flipped = OR if node.operator == AND else AND
                done.append(BinaryComposite(flipped, left, right))
            else:
                stack.append((node, True))
                stack.append((node.right, False))
                stack.append((node.left, False))
        return done[0]


Node = Union[Clause, BinaryComposite]


@dataclass(frozen=True)
class _Token:
    kind: str
    value: str
    position: int


_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<and>&&)
  | (?P<or>\|\|)
  | (?P<not>!)
  | (?P<lparen>\()
  | (?P<rparen>\))
  | (?P<comma>,)
  | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<raw>`[^`]*`)
  | (?P<quoted>"(?:[^"\\\n]|\\.)*")
    """,
    re.VERBOSE,
)

_ESCAPES = {
    "\\": "\\",
    '"': '"',
    "'": "'",
    "n": "\n",
    "t": "\t",
    "r": "\r",
}

_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)


def _unquote(literal: str, position: int) -> str:
    def _sub(match: "re.Match[str]") -> str:
        char = match.group(1)
        if char not in _ESCAPES:
            raise ParseError(
                f"invalid escape sequence '\\{char}'", position + match.start() + 1
            )
        return _ESCAPES[char]

    return _ESCAPE_RE.sub(_sub, literal[1:-1])


def _tokenize(expr: str) -> Iterator[_Token]:
    position = 0
    while position < len(expr):
        match = _TOKEN_RE.match(expr, position)
        if match is None:
            if expr[position] in "`\"":
                raise ParseError("unterminated string literal", position)
            raise ParseError(f"unexpected character {expr[position]!r}", position)
        kind = match.lastgroup or ""
        if kind != "ws":
            value = match.group()
            if kind == "raw":
                kind, value = "string", value[1:-1]
            elif kind == "quoted":
                kind, value = "string", _unquote(value, position)
            yield _Token(kind, value, position)
        position = match.end()


class _Parser:
    def __init__(self, expr: str) -> None:
        self._expr = expr
        self._tokens: List[_Token] = list(_tokenize(expr))
        self._index = 0
        self._depth = 0

    def _peek(self) -> Optional[_Token]:
        if self._index < len(self._tokens):
            return self._tokens[self._index]
        return None

    def _next(self, expected: str) -> _Token:
        token = self._peek()
        if token is None:
            raise ParseError(f"expected {expected}, got end of rule", len(self._expr))
        if token.kind != expected:
            raise ParseError(
                f"expected {expected}, got {token.value!r}", token.position
            )
        self._index += 1
        return token

    def _accept(self, kind: str) -> bool:
        token = self._peek()
        if token is not None and token.kind == kind:
            self._index += 1
            return True
        return False

    def parse(self) -> Node:
        if not self._tokens:
            raise ParseError("empty rule")
        node = self._or()
        token = self._peek()
        if token is not None:
            raise ParseError(f"unexpected {token.value!r}", token.position)
        return node

    def _or(self) -> Node:
        node = self._and()
        while self._accept("or"):
            node = BinaryComposite(OR, node, self._and())
        return node

    def _and(self) -> Node:
        node = self._unary()
        while self._accept("and"):
            node = BinaryComposite(AND, node, self._unary())
        return node

    def _unary(self) -> Node:
        negations = 0
        while self._accept("not"):
            negations += 1
        node = self._primary()
        return node.negate() if negations % 2 else node

    def _primary(self) -> Node:
        token = self._peek()
        if token is not None and token.kind == "lparen":
            if self._depth >= MAX_NESTING:
                raise ParseError("rule nested too deeply", token.position)
            self._index += 1
            self._depth += 1
            node = self._or()
            self._next("rparen")
            self._depth -= 1
            return node

        name = self._next("ident")
        if name.value not in MATCHERS:
            raise ParseError(f"unsupported matcher {name.value!r}", name.position)
        self._next("lparen")
        if self._peek() is not None and self._peek().kind == "rparen":
            raise ParseError(
                f"matcher {name.value} requires at least one argument", name.position
            )
        args = [self._next("string").value]
        while self._accept("comma"):
            args.append(self._next("string").value)
        self._next("rparen")
        return Clause(name.value, tuple(args))


def parse(expr: str) -> Node:
    """Parse ``expr`` into a rule tree, raising :class:`ParseError`."""

    return _Parser(expr).parse()


def clauses(node: Node) -> Iterator[Clause]:
    """Yield the clauses of ``node`` left to right."""

    stack: List[Node] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, BinaryComposite):
            stack.append(current.right)
            stack.append(current.left)
        else:
            yield current
