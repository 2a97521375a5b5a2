"""CodeSync - keep a local workspace and a remote per-user store in sync."""

__version__ = "0.1.0"
