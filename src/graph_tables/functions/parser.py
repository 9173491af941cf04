"""Parser for persisted named-function references."""

from __future__ import annotations

from typing import Any

import ply.yacc as yacc

from graph_tables.functions.lexer import FunctionLexer
from graph_tables.functions.reference import FunctionRef


class FunctionParser:
    """Parser turning ``name(arg, ...)`` text back into a FunctionRef."""

    tokens = FunctionLexer.tokens

    def __init__(self) -> None:
        self.lexer = FunctionLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore

    def p_call_empty(self, p: yacc.YaccProduction) -> None:
        """call : IDENTIFIER LPAREN RPAREN"""
        p[0] = FunctionRef(p[1])

    def p_call_args(self, p: yacc.YaccProduction) -> None:
        """call : IDENTIFIER LPAREN literal_list RPAREN"""
        p[0] = FunctionRef(p[1], tuple(p[3]))

    def p_literal_list_single(self, p: yacc.YaccProduction) -> None:
        """literal_list : literal"""
        p[0] = [p[1]]

    def p_literal_list_multiple(self, p: yacc.YaccProduction) -> None:
        """literal_list : literal_list COMMA literal"""
        p[0] = p[1]
        p[0].append(p[3])

    def p_literal_scalar(self, p: yacc.YaccProduction) -> None:
        """literal : STRING
                   | NUMBER"""
        p[0] = p[1]

    def p_literal_true(self, p: yacc.YaccProduction) -> None:
        """literal : TRUE"""
        p[0] = True

    def p_literal_false(self, p: yacc.YaccProduction) -> None:
        """literal : FALSE"""
        p[0] = False

    def p_literal_null(self, p: yacc.YaccProduction) -> None:
        """literal : NULL"""
        p[0] = None

    def p_literal_empty_list(self, p: yacc.YaccProduction) -> None:
        """literal : LBRACKET RBRACKET"""
        p[0] = ()

    def p_literal_list(self, p: yacc.YaccProduction) -> None:
        """literal : LBRACKET literal_list RBRACKET"""
        p[0] = tuple(p[2])

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (position {p.lexpos})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse(self, data: str) -> FunctionRef:
        """Parse a single function reference."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)
        return self.parser.parse(data, lexer=self.lexer.lexer)
