"""Lexer for the tag-delimited record markup.

The markup is deliberately loose: anything that is not a recognisable tag is
returned as TEXT, so tokenizing never fails on malformed input.
"""

import ply.lex as lex


class MarkupLexer:
    """Lexer for tokenizing ``<Field>value</Field>`` markup."""

    tokens = [
        "EMPTY_TAG",
        "END_TAG",
        "START_TAG",
        "TEXT",
    ]

    def __init__(self) -> None:
        self.lexer: lex.LexToken = None  # type: ignore

    # Function rules are tried in definition order.

    def t_EMPTY_TAG(self, t: lex.LexToken) -> lex.LexToken:
        r"<[a-zA-Z][-_a-zA-Z0-9]*(?:\s[^>]*)?/>"
        t.lexer.lineno += t.value.count("\n")
        t.value = t.value[1:-2].split(None, 1)[0]
        return t

    def t_END_TAG(self, t: lex.LexToken) -> lex.LexToken:
        r"</[a-zA-Z][-_a-zA-Z0-9]*>"
        t.value = t.value[2:-1]
        return t

    def t_START_TAG(self, t: lex.LexToken) -> lex.LexToken:
        r"<[a-zA-Z][-_a-zA-Z0-9]*>"
        t.value = t.value[1:-1]
        return t

    def t_TEXT(self, t: lex.LexToken) -> lex.LexToken:
        r"[^<]+|<"
        t.lexer.lineno += t.value.count("\n")
        return t

    def t_error(self, t: lex.LexToken) -> None:
        # Unreachable with the TEXT catch-all, but never fail on bad markup
        t.lexer.skip(1)

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        self.lexer = lex.lex(module=self, **kwargs)

    def input(self, data: str) -> None:
        """Set the input string to tokenize."""
        self.lexer.lineno = 1
        self.lexer.input(data)

    def token(self) -> lex.LexToken | None:
        """Return the next token."""
        return self.lexer.token()

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Tokenize the input, merging runs of adjacent TEXT tokens."""
        self.input(data)
        tokens: list[lex.LexToken] = []
        while True:
            tok = self.token()
            if tok is None:
                break
            if tok.type == "TEXT" and tokens and tokens[-1].type == "TEXT":
                tokens[-1].value += tok.value
                continue
            tokens.append(tok)
        return tokens
