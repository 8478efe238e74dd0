"""Tokenizers for the tag-delimited record markup."""

from fieldvals.parsing.markup_lexer import MarkupLexer

__all__ = [
    "MarkupLexer",
]
