"""Scripted master and replica endpoints for bootstrap tests.

They record every statement they receive (whitespace-collapsed) and keep
just enough state for the bootstrap to behave as against a real server:
existing subscriptions, the replica database, advanced origins.
"""

from __future__ import annotations

import re
from typing import Any

import asyncpg
from pydantic import SecretStr

from splitdb.core.enums import EndpointRole
from splitdb.infrastructure.postgres import ConnectionSettings, EndpointConfig

_SUBSCRIPTION_NAME = re.compile(r'SUBSCRIPTION "([^"]+)"')


def _collapse(query: str) -> str:
    return " ".join(query.split())


class ScriptedEndpoint:
    def __init__(self, name: str, config: EndpointConfig, fail_on: str | None = None) -> None:
        self.name = name
        self.config = config
        self.fail_on = fail_on
        self.statements: list[str] = []

    def _record(self, query: str) -> None:
        statement = _collapse(query)
        if self.fail_on is not None and self.fail_on in statement:
            msg = f"{self.name}: server rejected {self.fail_on!r}"
            raise OSError(msg)
        self.statements.append(statement)

    def ran(self, fragment: str) -> list[str]:
        return [statement for statement in self.statements if fragment in statement]

    async def aclose(self) -> None:
        return None


class ScriptedMaster(ScriptedEndpoint):
    def __init__(
        self,
        *,
        wal_level: str = "logical",
        lsn: str = "0/16B3748",
        ping_failures: int = 0,
        fail_on: str | None = None,
    ) -> None:
        super().__init__(
            "db-master",
            EndpointConfig(
                role=EndpointRole.MASTER,
                connection=ConnectionSettings(host="db-master", password=SecretStr("root")),
            ),
            fail_on,
        )
        self.wal_level = wal_level
        self.lsn = lsn
        self.ping_failures = ping_failures
        self.pings = 0

    async def aping(self, timeout: float | None = None) -> None:
        self.pings += 1
        if self.ping_failures:
            self.ping_failures -= 1
            msg = "connection refused"
            raise ConnectionRefusedError(msg)

    async def aexecute(self, query: str, *args: object) -> str:
        self._record(query)
        return "OK"

    async def afetchval(self, query: str, *args: object) -> Any:
        self._record(query)
        if query == "SHOW wal_level":
            return self.wal_level
        if "pg_current_wal_lsn" in query:
            return self.lsn
        msg = f"unexpected query on master: {query}"
        raise AssertionError(msg)


class ScriptedReplica(ScriptedEndpoint):
    def __init__(
        self,
        name: str,
        *,
        database_exists: bool = True,
        origin_busy: int = 0,
        fail_on: str | None = None,
    ) -> None:
        super().__init__(name, EndpointConfig(name=name, connection=ConnectionSettings(host=name)), fail_on)
        self.database_exists = database_exists
        self.origin_busy = origin_busy
        self.subscriptions: dict[str, int] = {}
        self.enabled: dict[str, bool] = {}
        self.advanced: list[tuple[object, ...]] = []

    async def afetchval_maintenance(self, query: str, *args: object) -> Any:
        self._record(query)
        return 1 if self.database_exists else None

    async def aexecute_maintenance(self, query: str) -> str:
        self._record(query)
        self.database_exists = True
        return "CREATE DATABASE"

    async def aexecute(self, query: str, *args: object) -> str:
        self._record(query)
        match = _SUBSCRIPTION_NAME.search(query)
        if match is not None:
            name = match.group(1)
            if query.startswith("CREATE SUBSCRIPTION"):
                self.subscriptions[name] = 16400 + len(self.subscriptions)
                self.enabled[name] = False
            elif query.endswith("DISABLE"):
                self.enabled[name] = False
            elif query.endswith("ENABLE"):
                self.enabled[name] = True
        return "OK"

    async def afetchval(self, query: str, *args: object) -> Any:
        self._record(query)
        if "pg_subscription" in query:
            return self.subscriptions.get(str(args[0]))
        if "pg_replication_origin_advance" in query:
            if self.origin_busy:
                self.origin_busy -= 1
                msg = f'replication origin "{args[0]}" is already active'
                raise asyncpg.exceptions.ObjectInUseError(msg)
            self.advanced.append(args)
            return None
        msg = f"unexpected query on replica: {query}"
        raise AssertionError(msg)
