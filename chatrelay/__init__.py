"""Chat relay backend: user signup/login and a proxy to a local Ollama runtime."""

__version__ = "1.0.0"
