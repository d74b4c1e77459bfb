"""LangChain Skills Agent — terminal dashboard for a documentation-scraping deep agent."""

__version__ = "1.0.0"
