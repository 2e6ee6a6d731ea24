"""Quoting helpers for statements that cannot take bind parameters.

Utility statements (``CREATE ROLE``, ``CREATE DATABASE``, ``CREATE
SUBSCRIPTION``...) do not accept ``$n`` placeholders, so identifiers and
literals have to be embedded in the statement text.
"""

from __future__ import annotations


def quote_ident(name: str) -> str:
    """Quote an SQL identifier, doubling embedded double quotes."""
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    """Quote an SQL string literal, doubling embedded single quotes."""
    return "'" + value.replace("'", "''") + "'"


def _conninfo_value(value: str) -> str:
    # libpq keyword/value syntax: single-quote, escape backslash and quote.
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def build_conninfo(*, host: str, port: int, dbname: str, user: str, password: str) -> str:
    """Build a libpq connection string, as used by ``CREATE SUBSCRIPTION ... CONNECTION``."""
    parts = {
        "host": host,
        "port": str(port),
        "dbname": dbname,
        "user": user,
        "password": password,
    }
    return " ".join(f"{key}={_conninfo_value(value)}" for key, value in parts.items())
