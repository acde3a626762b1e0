from __future__ import annotations


class DpmError(Exception):
    """ Base class for all dpm errors"""
    pass


class DpmParseError(DpmError):
    """ Raised when source text is not a well-formed S-expression"""

    def __init__(self, message: str, position: int = 0, line: int = 1, column: int = 1):
        super().__init__(f"{message} (line {line}, column {column})")
        self.reason = message
        self.position = position
        self.line = line
        self.column = column


class DpmSyntaxError(DpmError):
    """ Raised when a form is well-formed text but cannot be evaluated as written"""


class DpmUnboundSymbol(DpmError):
    """ Raised when a symbol is used before it is bound"""

    def __init__(self, name: str):
        super().__init__(f"Unbound symbol: {name}")
        self.name = name


class DpmUnknownCommand(DpmError):
    """ Raised when the head of a call is not a registered command"""

    def __init__(self, name: str):
        super().__init__(f"Unknown command: {name}")
        self.name = name


class DpmArityOrTypeError(DpmError):
    """ Raised by a command that cannot accept the arguments it was given"""


class DpmArityError(DpmArityOrTypeError):
    """ Raised when the number of arguments passed to a command is incorrect"""


class DpmTypeError(DpmArityOrTypeError):
    """ Raised when the types of arguments passed to a command are incorrect"""


class DpmCommandFailure(DpmError):
    """ Raised when a command's own operation fails (I/O, subprocess, ...)"""
