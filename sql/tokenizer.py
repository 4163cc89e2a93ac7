"""
=====================================================
Cursor-based scanner for annotation and REFERENCES text.
=====================================================

A single tokenizer serves both the annotation parser and the foreign-key
reference parser. Tokens are words, ``(``, ``)``, ``,`` and quoted strings
(``'...'`` or ``"..."`` with doubled-quote escapes). Every token keeps its
source offsets, so a balanced parenthesis group is sliced verbatim from the
original text instead of being re-joined from tokens.

Parentheses and commas always split words: ``CHECK(Price`` scans as
``CHECK``, ``(``, ``Price``.

Example:
    >>> [token.text for token in tokenize("CHECK(length(Name) > 0)")]
    ['CHECK', '(', 'length', '(', 'Name', ')', '>', '0', ')']
    >>> extract_balanced("CHECK(length(Name) > 0)")
    '(length(Name) > 0)'
"""

import enum
from dataclasses import dataclass
from typing import List, Optional

from .exceptions import AnnotationSyntaxError

_PUNCTUATION = '(),'
_QUOTES = '\'"'


class TokenKind(enum.Enum):
    WORD = 'word'
    LPAREN = '('
    RPAREN = ')'
    COMMA = ','
    STRING = 'string'


@dataclass(frozen=True)
class Token:
    """One scanned token.

    Attributes:
        kind: Token kind
        text: Source text of the token (quotes included for strings)
        start: Offset of the first character in the source
        end: Offset one past the last character
    """

    kind: TokenKind
    text: str
    start: int
    end: int

    @property
    def upper(self) -> str:
        return self.text.upper()

    @property
    def value(self) -> str:
        """Unquoted value for strings, the text itself otherwise."""
        if self.kind is not TokenKind.STRING:
            return self.text
        quote = self.text[0]
        return self.text[1:-1].replace(quote * 2, quote)

    def is_word(self, *words: str) -> bool:
        """True when this is a WORD equal (case-insensitive) to one of ``words``."""
        return self.kind is TokenKind.WORD and self.upper in words


def tokenize(text: str) -> List[Token]:
    """Scan ``text`` into tokens.

    Raises:
        AnnotationSyntaxError: On an unterminated quoted string
    """
    tokens = []
    position = 0
    length = len(text)

    while position < length:
        char = text[position]

        if char.isspace():
            position += 1
            continue

        if char in _PUNCTUATION:
            tokens.append(Token(TokenKind(char), char, position, position + 1))
            position += 1
            continue

        if char in _QUOTES:
            end = position + 1
            while True:
                end = text.find(char, end)
                if end == -1:
                    raise AnnotationSyntaxError(
                        f"Unterminated string starting at offset {position} in {text!r}"
                    )
                # doubled quote is an escaped quote
                if end + 1 < length and text[end + 1] == char:
                    end += 2
                    continue
                break
            tokens.append(Token(TokenKind.STRING, text[position:end + 1], position, end + 1))
            position = end + 1
            continue

        end = position
        while end < length and not text[end].isspace() and text[end] not in _PUNCTUATION + _QUOTES:
            end += 1
        tokens.append(Token(TokenKind.WORD, text[position:end], position, end))
        position = end

    return tokens


class TokenStream:
    """Token cursor over one source string.

    Attributes:
        source: The scanned text
        tokens: Tokens of ``source``
        position: Index of the current token
    """

    def __init__(self, source: str, tokens: Optional[List[Token]] = None):
        self.source = source
        self.tokens = tokens if tokens is not None else tokenize(source)
        self.position = 0

    @property
    def at_end(self) -> bool:
        return self.position >= len(self.tokens)

    def peek(self, offset: int = 0) -> Optional[Token]:
        index = self.position + offset
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return None

    def advance(self) -> Token:
        token = self.peek()
        if token is None:
            raise AnnotationSyntaxError(f"Unexpected end of text in {self.source!r}")
        self.position += 1
        return token

    def peek_word(self, *words: str, offset: int = 0) -> bool:
        token = self.peek(offset)
        return token is not None and token.is_word(*words)

    def accept_word(self, *words: str) -> Optional[Token]:
        """Consume and return the current token if it is one of ``words``."""
        if self.peek_word(*words):
            return self.advance()
        return None

    def closing_index(self, index: int) -> int:
        """Index of the RPAREN matching the LPAREN at ``index``.

        Raises:
            AnnotationSyntaxError: If the group is not closed
        """
        depth = 0
        for current in range(index, len(self.tokens)):
            kind = self.tokens[current].kind
            if kind is TokenKind.LPAREN:
                depth += 1
            elif kind is TokenKind.RPAREN:
                depth -= 1
                if depth == 0:
                    return current
        raise AnnotationSyntaxError(f"Unbalanced parentheses in {self.source!r}")

    def balanced(self) -> str:
        """Consume a parenthesized group at the cursor and return its source text.

        Raises:
            AnnotationSyntaxError: If the cursor is not on '(' or the group is unbalanced
        """
        token = self.peek()
        if token is None or token.kind is not TokenKind.LPAREN:
            found = token.text if token else 'end of text'
            raise AnnotationSyntaxError(f"Expected '(' but found {found!r} in {self.source!r}")
        closing = self.closing_index(self.position)
        text = self.source[token.start:self.tokens[closing].end]
        self.position = closing + 1
        return text

    def span(self, start: int, stop: int) -> str:
        """Source text covering tokens ``start`` up to (excluding) ``stop``."""
        if start >= stop:
            return ''
        return self.source[self.tokens[start].start:self.tokens[stop - 1].end]


def extract_balanced(text: str) -> str:
    """Return the first balanced parenthesis group of ``text``, verbatim.

    Raises:
        AnnotationSyntaxError: If ``text`` has no '(' or the group is unbalanced
    """
    stream = TokenStream(text)
    while not stream.at_end and stream.peek().kind is not TokenKind.LPAREN:
        stream.advance()
    return stream.balanced()


def strip_parentheses(group: str) -> str:
    """'(expr)' -> 'expr'."""
    return group[1:-1].strip()
