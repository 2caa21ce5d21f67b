"""Project settings push: name, services and auth."""

from typing import Any

from loguru import logger

from appwrite_sync.errors import ProjectNotInitializedError, SyncError
from appwrite_sync.manifest.settings import create_settings_object
from appwrite_sync.models.results import PushResult
from appwrite_sync.ports.gateway import ProjectsPort
from appwrite_sync.ports.manifest import ManifestStorePort
from appwrite_sync.services.classifier import values_equal
from appwrite_sync.services.confirmation import Confirmer
from appwrite_sync.services.progress import Reporter

# Applied in this order
AUTH_SECURITY_ORDER = (
    "duration",
    "limit",
    "sessionsLimit",
    "passwordDictionary",
    "passwordHistory",
    "personalDataCheck",
    "sessionAlerts",
    "mockNumbers",
)


def object_changes(remote: dict[str, Any], local: dict[str, Any], group: str, label: str) -> list[dict[str, str]]:
    """Rows for each setting in remote[group] whose local value differs."""
    remote_nested = remote.get(group)
    local_nested = local.get(group)
    if not isinstance(remote_nested, dict) or not isinstance(local_nested, dict):
        return []
    if not remote_nested or not local_nested:
        return []

    rows = []
    for setting, remote_value in remote_nested.items():
        local_value = local_nested.get(setting)
        if not values_equal(remote_value, local_value):
            rows.append(
                {
                    "group": label,
                    "setting": setting,
                    "remote": "" if remote_value is None else str(remote_value),
                    "local": "" if local_value is None else str(local_value),
                }
            )
    return rows


class SettingsPusher:
    """Push the manifest's project settings."""

    def __init__(
        self,
        projects: ProjectsPort,
        store: ManifestStorePort,
        confirmer: Confirmer,
        reporter: Reporter,
    ) -> None:
        self.projects = projects
        self.store = store
        self.confirmer = confirmer
        self.reporter = reporter

    async def pending_changes(self, project_id: str) -> list[dict[str, str]]:
        remote = create_settings_object(await self.projects.get_project(project_id))
        local = self.store.get_project().settings
        rows = object_changes(remote, local, "services", "Service")
        rows += object_changes(remote.get("auth", {}), local.get("auth") or {}, "methods", "Auth method")
        rows += object_changes(remote.get("auth", {}), local.get("auth") or {}, "security", "Auth security")
        return rows

    async def push(self) -> PushResult:
        """
        Diff, confirm and apply project settings.

        Raises:
            ProjectNotInitializedError: The manifest names no project.
        """
        result = PushResult()
        project = self.store.get_project()
        if not project.project_id:
            raise ProjectNotInitializedError()

        self.reporter.log("Checking for changes ...")
        try:
            rows = await self.pending_changes(project.project_id)
        except SyncError as e:
            # A failed comparison does not block the push
            logger.warning("Could not compare project settings: {}", e)
            rows = []

        if rows:
            self.confirmer.show_table(rows)
            if not self.confirmer.confirm():
                self.reporter.success("Successfully pushed 0 project settings.")
                return result

        self.reporter.log("Pushing project settings ...")
        settings = project.settings
        if project.project_name:
            self.reporter.log("Applying project name ...")
            await self.projects.update_project(project.project_id, project.project_name)

        services = settings.get("services") or {}
        if services:
            self.reporter.log("Applying service statuses ...")
            for service, status in services.items():
                await self.projects.update_service_status(project.project_id, service, bool(status))

        auth = settings.get("auth") or {}
        security = auth.get("security") or {}
        if security:
            self.reporter.log("Applying auth security settings ...")
            for setting in AUTH_SECURITY_ORDER:
                if setting in security and security[setting] is not None:
                    await self.projects.update_auth_security(project.project_id, setting, security[setting])

        methods = auth.get("methods") or {}
        if methods:
            self.reporter.log("Applying auth methods statuses ...")
            for method, status in methods.items():
                await self.projects.update_auth_status(project.project_id, method, bool(status))

        result.successfully_pushed = 1
        self.reporter.success("Successfully pushed all project settings.")
        return result
