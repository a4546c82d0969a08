"""Filesystem, text-patching and process primitives shared by every command."""

from next_maker.core.workspace import Workspace

__all__ = ["Workspace"]
