"""
Per-request context assembly.
"""
from .context_assembler import ContextAssembler, DEFAULT_INTRO_TEMPLATE, to_langchain_messages

__all__ = ["ContextAssembler", "DEFAULT_INTRO_TEMPLATE", "to_langchain_messages"]
