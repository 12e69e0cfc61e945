"""Domain models for the users GraphQL service."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class User:
    """Represents a user row stored in the relational store."""

    id: int
    name: str
    email: str
    created_at: str


__all__ = ["User"]
