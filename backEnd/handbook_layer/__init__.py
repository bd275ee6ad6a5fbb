"""
Handbook Layer

Turns university student handbooks (学生便覧) into page-tagged text
that can be searched and handed to an LLM with page citations.
"""

__version__ = "0.1.0"
