"""Generation studio backend: document generation jobs with live, cancellable progress."""

__version__ = "0.1.0"
