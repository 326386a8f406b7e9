"""Docmirror - project-local mirrors of documentation sources."""

__version__ = "0.3.0"
