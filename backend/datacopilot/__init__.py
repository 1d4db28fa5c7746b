"""DataCopilot: CSV profiling and AI-generated dataset summaries."""

__version__ = "0.1.0"
