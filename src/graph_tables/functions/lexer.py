"""Lexer for persisted named-function references, e.g. ``one_of(["a", 2])``."""

import json

import ply.lex as lex


class FunctionLexer:
    """Lexer for tokenizing function reference text."""

    # Reserved keywords
    reserved = {
        "true": "TRUE",
        "false": "FALSE",
        "null": "NULL",
    }

    # Token list
    tokens = [
        "IDENTIFIER",
        "STRING",
        "NUMBER",
        "LPAREN",
        "RPAREN",
        "LBRACKET",
        "RBRACKET",
        "COMMA",
    ] + list(reserved.values())

    # Simple tokens
    t_LPAREN = r"\("
    t_RPAREN = r"\)"
    t_LBRACKET = r"\["
    t_RBRACKET = r"\]"
    t_COMMA = r","

    t_ignore = " \t\n"

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore

    def t_STRING(self, t: lex.LexToken) -> lex.LexToken:
        r'"([^"\\]|\\.)*"'
        t.value = json.loads(t.value)
        return t

    def t_NUMBER(self, t: lex.LexToken) -> lex.LexToken:
        r"-?\d+(\.\d+)?([eE][-+]?\d+)?"
        if any(c in t.value for c in ".eE"):
            t.value = float(t.value)
        else:
            t.value = int(t.value)
        return t

    def t_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"[a-zA-Z_][a-zA-Z0-9_]*"
        t.type = self.reserved.get(t.value, "IDENTIFIER")
        return t

    def t_error(self, t: lex.LexToken) -> None:
        raise SyntaxError(f"Illegal character '{t.value[0]}' at position {t.lexpos}")

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        self.lexer = lex.lex(module=self, **kwargs)

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Tokenize input string and return list of tokens."""
        self.lexer.input(data)
        return list(iter(self.lexer.token, None))
