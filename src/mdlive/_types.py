"""Shared type definitions for mdlive."""

from typing import Literal

# Normalized document identifier ("guide/intro" for guide/intro.md)
type RouteKey = str

# Rendered HTML body of one document (without the page shell)
type RenderedDocument = str

# Raw filesystem change kinds reported by the watch backend
type ChangeKind = Literal["created", "modified", "deleted", "stop"]

# Why a graceful stop was requested through the raw event stream
type StopReason = Literal["interrupt", "terminate", "hangup", "quit", "console", "backend-error"]
