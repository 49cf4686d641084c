# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
jaktc: driver for the Jakt-subset to C++ compiler.

Pipeline (single file, strictly linear):

  register -> lex -> parse -> typecheck -> gate -> generate
    -> emit C++ on stdout, or write it under the binary dir and build
       (optionally prettify, optionally run)

`jaktc.driver.main` is the CLI entrypoint; the phases live in
`jaktc.lexer`, `jaktc.parser`, `jaktc.typechecker` and `jaktc.codegen`.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
