"""unslop - find and remediate AI-writing patterns in a repository."""

__version__ = "0.1.0"
