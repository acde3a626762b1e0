from dpm.reader.parser import read, read_all, lex, TokenStream

__all__ = ["read", "read_all", "lex", "TokenStream"]
