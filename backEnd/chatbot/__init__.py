"""
Handbook Chatbot Service Layer.

Answers student questions from the handbook layer's page-tagged
text through a LangChain chat model, with optional LangSmith tracing.
"""

__version__ = "0.1.0"
