"""Function push: definition, variables, code deployment and build polling."""

import asyncio
import uuid
from pathlib import Path
from typing import Any

from dotenv import dotenv_values
from loguru import logger
from rich.markup import escape

from appwrite_sync.errors import NotFoundError, RuntimeMismatchError, SyncError
from appwrite_sync.gateway.queries import Query, paginate
from appwrite_sync.manifest.store import ManifestStore
from appwrite_sync.models.manifest import Function
from appwrite_sync.models.results import FailedDeployment, PushResult
from appwrite_sync.ports.gateway import ConsolePort, FunctionsPort, ProxyPort
from appwrite_sync.services.confirmation import Confirmer
from appwrite_sync.services.poller import RemoteWaiter
from appwrite_sync.services.progress import Reporter, StatusRow
from appwrite_sync.services.push.approval import FUNCTION_KEYS, approve_changes
from appwrite_sync.utils.paths import build_code_archive

DEFINITION_FIELDS = (
    "name",
    "runtime",
    "execute",
    "events",
    "schedule",
    "timeout",
    "enabled",
    "logging",
    "entrypoint",
    "commands",
    "scopes",
    "specification",
)


def function_definition(function: Function) -> dict[str, Any]:
    """Create/update body for a declared function."""
    payload = function.to_payload()
    return {field: payload[field] for field in DEFINITION_FIELDS if field in payload}


def load_variables(function: Function, base_dir: Path) -> dict[str, str]:
    """Manifest variables overlaid with the function directory's .env file."""
    variables = dict(function.variables)
    if function.path:
        env_file = base_dir / function.path / ".env"
        if env_file.is_file():
            variables.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
    return variables


def failed_deployment_url(console_url: str, project_id: str, failed: FailedDeployment) -> str:
    return (
        f"{console_url}/console/project-{project_id}/functions/"
        f"function-{failed.function_id}/deployment-{failed.deployment_id}"
    )


class FunctionPusher:
    """Push functions concurrently, one task per function."""

    def __init__(
        self,
        functions: FunctionsPort,
        proxy: ProxyPort,
        console: ConsolePort,
        store: ManifestStore,
        confirmer: Confirmer,
        waiter: RemoteWaiter,
        reporter: Reporter,
        console_url: str = "",
    ) -> None:
        self.functions = functions
        self.proxy = proxy
        self.console = console
        self.store = store
        self.confirmer = confirmer
        self.waiter = waiter
        self.reporter = reporter
        self.console_url = console_url

    @property
    def base_dir(self) -> Path:
        return self.store.path.parent

    def _select(self, function_ids: list[str] | None) -> list[Function]:
        declared = self.store.get_functions()
        if not function_ids:
            return declared
        selected = []
        for function_id in function_ids:
            function = self.store.get_function(function_id)
            if function is None:
                raise SyncError(f"Function '{function_id}' not found.")
            selected.append(function)
        return selected

    def _ensure_entrypoints(self, functions: list[Function]) -> list[Function]:
        ready = []
        for function in functions:
            if not function.entrypoint:
                self.reporter.log(f"Function {escape(function.name)} is missing an entrypoint.")
                entrypoint = self.confirmer.ask_entrypoint(function.name)
                function = self.store.update_function(function.id, entrypoint=entrypoint)
            ready.append(function)
        return ready

    async def _confirm_variables_override(self, functions: list[Function]) -> bool:
        if self.confirmer.force:
            return True
        with_remote: list[str] = []
        for function in functions:
            try:
                response = await self.functions.list_variables(function.id, [Query.limit(1)])
            except NotFoundError:
                continue
            if int(response.get("total", 0)) > 0:
                with_remote.append(function.name)
        if not with_remote:
            return True
        self.reporter.warn(
            f"Remote variables of {', '.join(with_remote)} will be deleted and replaced by local ones."
        )
        return self.confirmer.confirm()

    async def push(
        self,
        function_ids: list[str] | None = None,
        async_deploy: bool = False,
        code: bool = True,
        with_variables: bool = False,
    ) -> PushResult:
        """
        Push declared functions.

        Args:
            function_ids: Restrict to these functions (default: all declared).
            async_deploy: Do not wait for builds to finish.
            code: Upload a new deployment.
            with_variables: Replace remote variables with local ones.
        """
        result = PushResult()
        functions = self._select(function_ids)
        if not functions:
            self.reporter.log("No functions found.")
            return result

        functions = self._ensure_entrypoints(functions)

        approved = await approve_changes(
            functions,
            lambda f: self.functions.get_function(f.id),
            FUNCTION_KEYS,
            "functions",
            self.confirmer,
            self.reporter,
            result,
            skip=("vars",),
        )
        if approved is None:
            return result
        functions = approved

        if with_variables and not await self._confirm_variables_override(functions):
            return result

        self.reporter.log("Pushing functions ...")
        await asyncio.gather(
            *(self._push_one(f, result, async_deploy, code, with_variables) for f in functions)
        )

        project_id = self.store.project_id
        for failed in result.failed_deployments:
            url = failed_deployment_url(self.console_url, project_id, failed)
            self.reporter.error(f"Deployment of {failed.name} has failed. Check at {url} for more details")

        if async_deploy or not code:
            self.reporter.success(f"Successfully pushed {result.successfully_pushed} functions.")
        elif result.successfully_pushed == 0:
            self.reporter.error("No functions were pushed.")
        elif result.successfully_deployed != result.successfully_pushed:
            self.reporter.warn(
                f"Successfully pushed {result.successfully_deployed} of {result.successfully_pushed} functions"
            )
        else:
            self.reporter.success(f"Successfully pushed {result.successfully_pushed} functions.")

        for error in result.errors:
            logger.debug("Function push error: {!r}", error)
        return result

    async def _push_one(
        self,
        function: Function,
        result: PushResult,
        async_deploy: bool,
        code: bool,
        with_variables: bool,
    ) -> None:
        ignore_source = "manifest" if function.ignore is not None else ".gitignore"
        row = self.reporter.row(function.name, function.id)
        row.update("Getting", end=f"Ignoring using: {ignore_source}")

        try:
            await self._upsert(function, row)
        except SyncError as e:
            result.errors.append(e)
            row.fail(str(e))
            return

        if with_variables:
            try:
                row.update("Updating variables")
                await self._replace_variables(function)
            except SyncError as e:
                result.errors.append(e)
                row.fail(str(e))
                return

        if not code:
            result.successfully_pushed += 1
            result.successfully_deployed += 1
            row.update("Pushed")
            return

        try:
            row.update("Pushing")
            deployment = await self._deploy(function)
        except FileNotFoundError as e:
            result.errors.append(e)
            row.fail("Not found in the current directory. Skipping...")
            return
        except SyncError as e:
            result.errors.append(e)
            row.fail(str(e))
            return

        result.successfully_pushed += 1
        row.update("Pushed")
        if async_deploy:
            return

        try:
            await self._await_build(function, str(deployment["$id"]), result, row)
        except SyncError as e:
            result.errors.append(e)
            row.fail(str(e))

    async def _upsert(self, function: Function, row: StatusRow) -> None:
        definition = function_definition(function)
        try:
            remote = await self.functions.get_function(function.id)
        except NotFoundError:
            row.update("Creating")
            await self.functions.create_function(function.id, definition)
            await self._create_domain_rule(function)
            row.update("Created")
            return

        if remote.get("runtime") != function.runtime:
            raise RuntimeMismatchError(function.runtime, remote.get("runtime"))
        row.update("Updating")
        await self.functions.update_function(function.id, definition)

    async def _create_domain_rule(self, function: Function) -> None:
        variables = await self.console.variables()
        domain = f"{uuid.uuid4().hex[:20]}.{variables.get('_APP_DOMAIN_FUNCTIONS', '')}"
        await self.proxy.create_function_rule(domain, function.id)
        logger.debug("Created proxy rule {} for {}", domain, function.id)

    async def _replace_variables(self, function: Function) -> None:
        async def fetch(queries: list[str]) -> dict[str, Any]:
            return await self.functions.list_variables(function.id, queries)

        remote = await paginate(fetch, "variables")
        await asyncio.gather(*(self.functions.delete_variable(function.id, str(v["$id"])) for v in remote))
        if remote:
            await self.waiter.variables_cleared(self.functions, function.id)

        variables = load_variables(function, self.base_dir)
        await asyncio.gather(
            *(self.functions.create_variable(function.id, key, value) for key, value in variables.items())
        )

    async def _deploy(self, function: Function) -> dict[str, Any]:
        code_dir = self.base_dir / (function.path or f"functions/{function.name}")
        archive = build_code_archive(code_dir, function.ignore)
        return await self.functions.create_deployment(
            function.id,
            archive,
            entrypoint=function.entrypoint,
            commands=function.commands,
            activate=True,
        )

    async def _await_build(
        self, function: Function, deployment_id: str, result: PushResult, row: StatusRow
    ) -> None:
        row.update("Deploying", end="Checking deployment status...")

        def on_status(status: str) -> None:
            if status not in ("ready", "failed"):
                row.update("Deploying", end=f"Current status: {status}")

        deployment = await self.waiter.deployment_finished(
            self.functions, function.id, deployment_id, on_status
        )
        if deployment.get("status") == "failed":
            result.failed_deployments.append(FailedDeployment(function.name, function.id, deployment_id))
            row.fail("Failed to deploy")
            return

        result.successfully_deployed += 1
        rules = await self.proxy.list_rules(
            [
                Query.limit(1),
                Query.equal("deploymentResourceType", "function"),
                Query.equal("deploymentResourceId", function.id),
                Query.equal("trigger", "manual"),
            ]
        )
        url = ""
        if int(rules.get("total", 0)) == 1:
            url = str(rules["rules"][0].get("domain", ""))
        row.update("Deployed", end=url)
