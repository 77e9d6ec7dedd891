"""
Content chat service.

Searches headless CMS content and answers questions about it through
operator-configured LLM chatbots.
"""

__version__ = "1.0.0"
