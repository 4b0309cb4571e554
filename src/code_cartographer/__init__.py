"""code_cartographer: snapshot a project tree into a single LLM-friendly document."""

__version__ = "0.5.0"
