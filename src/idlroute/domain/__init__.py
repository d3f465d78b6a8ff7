"""Domain layer: IDL model, lexer, parser and doc directives.

This layer depends only on stdlib and idlroute.errors.
It must never import from services, infrastructure, commands, or config.
"""
