"""Completion polling for asynchronous backend operations.

Attribute and index construction, deletions, variable wipes and
deployment builds all finish in the background. Poller re-runs a
check until it holds or an iteration ceiling is reached; RemoteWaiter
builds the concrete waits on top of it.
"""

import asyncio
import math
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from appwrite_sync.config.models import PollingConfig
from appwrite_sync.errors import PollFailureError, PollTimeoutError
from appwrite_sync.gateway.queries import paginate
from appwrite_sync.ports.gateway import FunctionsPort, SchemaPort

FAILED_STATUSES = frozenset({"failed", "stuck"})
DEPLOYMENT_DONE_STATUSES = frozenset({"ready", "failed"})


@dataclass(frozen=True)
class PollProgress:
    """Result of one check: whether the condition holds, and how much is left."""

    done: bool
    pending: int = 0


CheckResult = bool | PollProgress
Check = Callable[[], Awaitable[CheckResult]]
Sleep = Callable[[float], Awaitable[Any]]
Notice = Callable[[str], None]


class Poller:
    """
    Bounded re-check loop.

    The ceiling is scaled per call: when the workload (given up front,
    or the pending count reported by the first check) exceeds one
    batch, the ceiling is multiplied by the number of batches.
    """

    def __init__(
        self,
        interval: float = 2.0,
        max_iterations: int = 30,
        batch_size: int = 100,
        sleep: Sleep = asyncio.sleep,
        notice: Notice | None = None,
    ) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.interval = interval
        self.max_iterations = max_iterations
        self.batch_size = batch_size
        self._sleep = sleep
        self._notice = notice

    @classmethod
    def from_config(cls, config: PollingConfig, **kwargs: Any) -> "Poller":
        return cls(config.interval_seconds, config.max_iterations, config.batch_size, **kwargs)

    def with_ceiling(self, max_iterations: int) -> "Poller":
        """Copy of this poller with a different base ceiling."""
        return Poller(self.interval, max_iterations, self.batch_size, self._sleep, self._notice)

    def with_interval(self, interval: float, max_iterations: int | None = None) -> "Poller":
        return Poller(
            interval, max_iterations or self.max_iterations, self.batch_size, self._sleep, self._notice
        )

    def effective_ceiling(self, workload: int) -> int:
        """Ceiling for a workload: base × ceil(workload / batch) when that exceeds one batch."""
        batches = math.ceil(workload / self.batch_size) if workload > 0 else 0
        if batches > 1:
            return self.max_iterations * batches
        return self.max_iterations

    async def poll(self, check: Check, workload: int = 0, label: str = "elements") -> bool:
        """
        Re-run check until it reports done.

        Args:
            check: One remote query. Returns a bool or PollProgress; raises
                PollFailureError on a terminal backend failure.
            workload: Known number of elements being awaited.
            label: What is being awaited, for the scaling notice.

        Returns:
            True once check holds; False when the ceiling is exhausted.
        """
        ceiling = self.max_iterations
        iteration = 0
        while iteration < ceiling:
            iteration += 1
            result = await check()
            progress = result if isinstance(result, PollProgress) else PollProgress(done=bool(result))

            if iteration == 1:
                scaled = self.effective_ceiling(max(workload, progress.pending))
                if scaled != ceiling:
                    ceiling = scaled
                    message = (
                        f"Found a large number of {label}, increasing timeout to "
                        f"{ceiling * self.interval:g} seconds"
                    )
                    logger.info(message)
                    if self._notice:
                        self._notice(message)

            if progress.done:
                logger.debug("Poll for {} done after {} iteration(s)", label, iteration)
                return True
            if iteration < ceiling:
                await self._sleep(self.interval)

        logger.warning("Poll for {} gave up after {} iteration(s)", label, ceiling)
        return False


class RemoteWaiter:
    """The concrete waits of a push, all built on one Poller."""

    def __init__(
        self,
        poller: Poller,
        deployment_poller: Poller | None = None,
    ) -> None:
        self.poller = poller
        self.deployment_poller = deployment_poller or poller.with_interval(poller.interval * 1.5)

    @classmethod
    def from_config(cls, config: PollingConfig, **kwargs: Any) -> "RemoteWaiter":
        poller = Poller.from_config(config, **kwargs)
        deployment = poller.with_interval(
            config.interval_seconds * config.deployment_interval_factor,
            config.deployment_max_iterations,
        )
        return cls(poller, deployment)

    def with_attempts(self, attempts: int | None) -> "RemoteWaiter":
        """Replace the base ceiling of attribute, index and variable waits."""
        if not attempts:
            return self
        return RemoteWaiter(self.poller.with_ceiling(attempts), self.deployment_poller)

    async def _list(
        self, schema: SchemaPort, database_id: str, container_id: str, indexes: bool
    ) -> list[dict[str, Any]]:
        if indexes:

            async def fetch_indexes(queries: list[str]) -> dict[str, Any]:
                return await schema.list_indexes(database_id, container_id, queries)

            return await paginate(fetch_indexes, "indexes", self.poller.batch_size)

        async def fetch_attributes(queries: list[str]) -> dict[str, Any]:
            return await schema.list_attributes(database_id, container_id, queries)

        return await paginate(fetch_attributes, schema.flavor.attributes, self.poller.batch_size)

    async def _wait_deleted(
        self,
        schema: SchemaPort,
        database_id: str,
        container_id: str,
        keys: Iterable[str],
        indexes: bool,
    ) -> None:
        wanted = set(keys)
        what = "Index" if indexes else schema.flavor.attribute_title

        async def check() -> PollProgress:
            present = {str(a["key"]) for a in await self._list(schema, database_id, container_id, indexes)}
            remaining = present & wanted
            return PollProgress(done=not remaining, pending=len(remaining))

        if not await self.poller.poll(check, len(wanted), label=f"{what.lower()} deletions"):
            raise PollTimeoutError(f"{what} deletion timed out.")

    async def _wait_available(
        self,
        schema: SchemaPort,
        database_id: str,
        container_id: str,
        keys: Iterable[str],
        indexes: bool,
    ) -> None:
        wanted = set(keys)
        what = "Index" if indexes else schema.flavor.attribute_title

        async def check() -> PollProgress:
            statuses = {
                str(a["key"]): a.get("status")
                for a in await self._list(schema, database_id, container_id, indexes)
            }
            for key in sorted(wanted):
                if statuses.get(key) in FAILED_STATUSES:
                    raise PollFailureError(f"{what} '{key}' failed!", key)
            pending = [k for k in wanted if statuses.get(k) != "available"]
            return PollProgress(done=not pending, pending=len(pending))

        if not await self.poller.poll(check, len(wanted), label=f"{what.lower()}s"):
            raise PollTimeoutError(f"{what} creation timed out.")

    async def attributes_deleted(
        self, schema: SchemaPort, database_id: str, container_id: str, keys: Iterable[str]
    ) -> None:
        """Wait until none of keys is listed on the container."""
        await self._wait_deleted(schema, database_id, container_id, keys, indexes=False)

    async def attributes_available(
        self, schema: SchemaPort, database_id: str, container_id: str, keys: Iterable[str]
    ) -> None:
        """Wait until every key is listed with status `available`."""
        await self._wait_available(schema, database_id, container_id, keys, indexes=False)

    async def indexes_deleted(
        self, schema: SchemaPort, database_id: str, container_id: str, keys: Iterable[str]
    ) -> None:
        await self._wait_deleted(schema, database_id, container_id, keys, indexes=True)

    async def indexes_available(
        self, schema: SchemaPort, database_id: str, container_id: str, keys: Iterable[str]
    ) -> None:
        await self._wait_available(schema, database_id, container_id, keys, indexes=True)

    async def variables_cleared(self, functions: FunctionsPort, function_id: str) -> None:
        """Wait until a function has no environment variables left."""

        async def check() -> PollProgress:
            response = await functions.list_variables(function_id)
            total = int(response.get("total", 0))
            return PollProgress(done=total == 0, pending=total)

        if not await self.poller.poll(check, label="variables"):
            raise PollTimeoutError("Variable deletion timed out.")

    async def deployment_finished(
        self,
        functions: FunctionsPort,
        function_id: str,
        deployment_id: str,
        on_status: Callable[[str], None] | None = None,
    ) -> dict[str, Any]:
        """
        Wait for a deployment build to end.

        Returns:
            The final deployment document (status `ready` or `failed`).
        """
        latest: dict[str, Any] = {}

        async def check() -> bool:
            nonlocal latest
            latest = await functions.get_deployment(function_id, deployment_id)
            status = str(latest.get("status", ""))
            if on_status:
                on_status(status)
            return status in DEPLOYMENT_DONE_STATUSES

        if not await self.deployment_poller.poll(check, label="deployments"):
            raise PollTimeoutError("Deployment build timed out.")
        return latest
