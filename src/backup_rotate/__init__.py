"""backup-rotate: push dated backups to cloud storage and prune old copies."""

__version__ = "0.1.0"
