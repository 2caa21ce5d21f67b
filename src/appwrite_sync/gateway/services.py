"""Resource services over ApiClient.

Each class implements one of the gateway ports by mapping methods to
endpoint paths and request bodies.
"""

from typing import Any

from appwrite_sync.gateway.client import ApiClient
from appwrite_sync.models.schema import SchemaFlavor

Document = dict[str, Any]

# Attribute type (and string format) -> endpoint segment
_ATTRIBUTE_ENDPOINTS: dict[str, str] = {
    "string": "string",
    "email": "email",
    "url": "url",
    "ip": "ip",
    "enum": "enum",
    "integer": "integer",
    "double": "float",
    "float": "float",
    "boolean": "boolean",
    "datetime": "datetime",
    "relationship": "relationship",
    "point": "point",
    "linestring": "line",
    "polygon": "polygon",
}

_STRING_FORMATS = {"email", "url", "ip", "enum"}
_GEO_TYPES = {"point", "linestring", "polygon"}
_NUMERIC_TYPES = {"integer", "double", "float"}


def attribute_endpoint(attribute: Document) -> str:
    """
    Resolve the type-specific endpoint segment for an attribute.

    Raises:
        ValueError: If the attribute type is not supported.
    """
    attr_type = attribute.get("type")
    if attr_type == "string" and attribute.get("format") in _STRING_FORMATS:
        return _ATTRIBUTE_ENDPOINTS[attribute["format"]]
    if attr_type not in _ATTRIBUTE_ENDPOINTS or attr_type in _STRING_FORMATS:
        raise ValueError(f"Unsupported attribute type: {attr_type}")
    return _ATTRIBUTE_ENDPOINTS[attr_type]


def _drop_none(body: Document) -> Document:
    return {k: v for k, v in body.items() if v is not None}


class SchemaService:
    """Databases, containers, attributes and indexes of one flavor."""

    def __init__(self, client: ApiClient, flavor: SchemaFlavor) -> None:
        self._client = client
        self.flavor = flavor

    def _db(self, database_id: str) -> str:
        return f"{self.flavor.base_path}/{database_id}"

    def _container(self, database_id: str, container_id: str) -> str:
        return f"{self._db(database_id)}/{self.flavor.containers}/{container_id}"

    async def list_databases(self, queries: list[str] | None = None) -> Document:
        return await self._client.call("GET", self.flavor.base_path, params={"queries": queries})

    async def get_database(self, database_id: str) -> Document:
        return await self._client.call("GET", self._db(database_id))

    async def create_database(self, database_id: str, name: str, enabled: bool = True) -> Document:
        body = {"databaseId": database_id, "name": name, "enabled": enabled}
        return await self._client.call("POST", self.flavor.base_path, json=body)

    async def update_database(self, database_id: str, name: str, enabled: bool = True) -> Document:
        return await self._client.call("PUT", self._db(database_id), json={"name": name, "enabled": enabled})

    async def delete_database(self, database_id: str) -> None:
        await self._client.call("DELETE", self._db(database_id))

    async def list_containers(self, database_id: str, queries: list[str] | None = None) -> Document:
        path = f"{self._db(database_id)}/{self.flavor.containers}"
        return await self._client.call("GET", path, params={"queries": queries})

    async def get_container(self, database_id: str, container_id: str) -> Document:
        return await self._client.call("GET", self._container(database_id, container_id))

    async def create_container(
        self,
        database_id: str,
        container_id: str,
        name: str,
        security: bool,
        permissions: list[str],
        enabled: bool = True,
    ) -> Document:
        body = {
            self.flavor.container_id_param: container_id,
            "name": name,
            "permissions": permissions,
            self.flavor.security_param: security,
            "enabled": enabled,
        }
        path = f"{self._db(database_id)}/{self.flavor.containers}"
        return await self._client.call("POST", path, json=body)

    async def update_container(
        self,
        database_id: str,
        container_id: str,
        name: str,
        security: bool,
        permissions: list[str],
        enabled: bool = True,
    ) -> Document:
        body = {
            "name": name,
            "permissions": permissions,
            self.flavor.security_param: security,
            "enabled": enabled,
        }
        return await self._client.call("PUT", self._container(database_id, container_id), json=body)

    async def delete_container(self, database_id: str, container_id: str) -> None:
        await self._client.call("DELETE", self._container(database_id, container_id))

    async def list_attributes(
        self, database_id: str, container_id: str, queries: list[str] | None = None
    ) -> Document:
        path = f"{self._container(database_id, container_id)}/{self.flavor.attributes}"
        return await self._client.call("GET", path, params={"queries": queries})

    async def create_attribute(self, database_id: str, container_id: str, attribute: Document) -> Document:
        endpoint = attribute_endpoint(attribute)
        path = f"{self._container(database_id, container_id)}/{self.flavor.attributes}/{endpoint}"
        return await self._client.call("POST", path, json=self._create_body(attribute))

    async def update_attribute(self, database_id: str, container_id: str, attribute: Document) -> Document:
        endpoint = attribute_endpoint(attribute)
        base = f"{self._container(database_id, container_id)}/{self.flavor.attributes}"
        if endpoint == "relationship":
            path = f"{base}/{attribute['key']}/relationship"
            return await self._client.call("PATCH", path, json=_drop_none({"onDelete": attribute.get("onDelete")}))
        path = f"{base}/{endpoint}/{attribute['key']}"
        return await self._client.call("PATCH", path, json=self._update_body(attribute))

    async def delete_attribute(self, database_id: str, container_id: str, key: str) -> None:
        path = f"{self._container(database_id, container_id)}/{self.flavor.attributes}/{key}"
        await self._client.call("DELETE", path)

    async def list_indexes(
        self, database_id: str, container_id: str, queries: list[str] | None = None
    ) -> Document:
        path = f"{self._container(database_id, container_id)}/indexes"
        return await self._client.call("GET", path, params={"queries": queries})

    async def create_index(
        self,
        database_id: str,
        container_id: str,
        key: str,
        index_type: str,
        fields: list[str],
        orders: list[str] | None = None,
    ) -> Document:
        body = _drop_none(
            {
                "key": key,
                "type": index_type,
                self.flavor.index_fields_param: fields,
                "orders": orders or None,
            }
        )
        path = f"{self._container(database_id, container_id)}/indexes"
        return await self._client.call("POST", path, json=body)

    async def delete_index(self, database_id: str, container_id: str, key: str) -> None:
        path = f"{self._container(database_id, container_id)}/indexes/{key}"
        await self._client.call("DELETE", path)

    def _create_body(self, attribute: Document) -> Document:
        attr_type = attribute["type"]
        if attr_type == "relationship":
            related = attribute.get("relatedTable") or attribute.get("relatedCollection")
            return _drop_none(
                {
                    self.flavor.related_param: related,
                    "type": attribute.get("relationType"),
                    "twoWay": attribute.get("twoWay"),
                    "key": attribute["key"],
                    "twoWayKey": attribute.get("twoWayKey"),
                    "onDelete": attribute.get("onDelete"),
                }
            )

        body: Document = {
            "key": attribute["key"],
            "required": attribute.get("required", False),
            "default": attribute.get("default"),
        }
        if attr_type not in _GEO_TYPES:
            body["array"] = attribute.get("array", False)
        if attr_type in _NUMERIC_TYPES:
            body["min"] = attribute.get("min")
            body["max"] = attribute.get("max")
        if attr_type == "string":
            fmt = attribute.get("format")
            if fmt == "enum":
                body["elements"] = attribute.get("elements")
            elif fmt not in _STRING_FORMATS:
                body["size"] = attribute.get("size")
                body["encrypt"] = attribute.get("encrypt")
        return _drop_none(body) | {"default": attribute.get("default")}

    def _update_body(self, attribute: Document) -> Document:
        body: Document = {
            "required": attribute.get("required", False),
            "default": attribute.get("default"),
        }
        if attribute["type"] in _NUMERIC_TYPES:
            body["min"] = attribute.get("min")
            body["max"] = attribute.get("max")
        if attribute["type"] == "string" and attribute.get("format") == "enum":
            body["elements"] = attribute.get("elements")
        return _drop_none(body) | {"default": attribute.get("default")}


class FunctionsService:
    """Functions API."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list_functions(self, queries: list[str] | None = None) -> Document:
        return await self._client.call("GET", "/functions", params={"queries": queries})

    async def get_function(self, function_id: str) -> Document:
        return await self._client.call("GET", f"/functions/{function_id}")

    async def create_function(self, function_id: str, definition: Document) -> Document:
        body = _drop_none({"functionId": function_id, **definition})
        return await self._client.call("POST", "/functions", json=body)

    async def update_function(self, function_id: str, definition: Document) -> Document:
        return await self._client.call("PUT", f"/functions/{function_id}", json=_drop_none(definition))

    async def list_variables(self, function_id: str, queries: list[str] | None = None) -> Document:
        path = f"/functions/{function_id}/variables"
        return await self._client.call("GET", path, params={"queries": queries})

    async def create_variable(self, function_id: str, key: str, value: str, secret: bool = False) -> Document:
        body = {"key": key, "value": value, "secret": secret}
        return await self._client.call("POST", f"/functions/{function_id}/variables", json=body)

    async def delete_variable(self, function_id: str, variable_id: str) -> None:
        await self._client.call("DELETE", f"/functions/{function_id}/variables/{variable_id}")

    async def create_deployment(
        self,
        function_id: str,
        code: bytes,
        entrypoint: str | None = None,
        commands: str | None = None,
        activate: bool = True,
    ) -> Document:
        data = _drop_none(
            {
                "entrypoint": entrypoint,
                "commands": commands,
                "activate": "true" if activate else "false",
            }
        )
        files = {"code": ("code.tar.gz", code, "application/gzip")}
        return await self._client.call(
            "POST", f"/functions/{function_id}/deployments", data=data, files=files
        )

    async def get_deployment(self, function_id: str, deployment_id: str) -> Document:
        return await self._client.call("GET", f"/functions/{function_id}/deployments/{deployment_id}")

    async def list_deployments(self, function_id: str, queries: list[str] | None = None) -> Document:
        path = f"/functions/{function_id}/deployments"
        return await self._client.call("GET", path, params={"queries": queries})

    async def download_deployment(self, function_id: str, deployment_id: str) -> bytes:
        path = f"/functions/{function_id}/deployments/{deployment_id}/download"
        return await self._client.call("GET", path, raw=True)


class StorageService:
    """Storage buckets API."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list_buckets(self, queries: list[str] | None = None) -> Document:
        return await self._client.call("GET", "/storage/buckets", params={"queries": queries})

    async def get_bucket(self, bucket_id: str) -> Document:
        return await self._client.call("GET", f"/storage/buckets/{bucket_id}")

    async def create_bucket(self, bucket_id: str, definition: Document) -> Document:
        body = _drop_none({"bucketId": bucket_id, **definition})
        return await self._client.call("POST", "/storage/buckets", json=body)

    async def update_bucket(self, bucket_id: str, definition: Document) -> Document:
        return await self._client.call("PUT", f"/storage/buckets/{bucket_id}", json=_drop_none(definition))


class TeamsService:
    """Teams API."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list_teams(self, queries: list[str] | None = None) -> Document:
        return await self._client.call("GET", "/teams", params={"queries": queries})

    async def get_team(self, team_id: str) -> Document:
        return await self._client.call("GET", f"/teams/{team_id}")

    async def create_team(self, team_id: str, name: str) -> Document:
        return await self._client.call("POST", "/teams", json={"teamId": team_id, "name": name})

    async def update_team_name(self, team_id: str, name: str) -> Document:
        return await self._client.call("PUT", f"/teams/{team_id}", json={"name": name})


class MessagingService:
    """Messaging topics API."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list_topics(self, queries: list[str] | None = None) -> Document:
        return await self._client.call("GET", "/messaging/topics", params={"queries": queries})

    async def get_topic(self, topic_id: str) -> Document:
        return await self._client.call("GET", f"/messaging/topics/{topic_id}")

    async def create_topic(self, topic_id: str, name: str, subscribe: list[str]) -> Document:
        body = {"topicId": topic_id, "name": name, "subscribe": subscribe}
        return await self._client.call("POST", "/messaging/topics", json=body)

    async def update_topic(self, topic_id: str, name: str, subscribe: list[str]) -> Document:
        body = {"name": name, "subscribe": subscribe}
        return await self._client.call("PATCH", f"/messaging/topics/{topic_id}", json=body)


# Auth security setting -> (endpoint segment, body field)
AUTH_SECURITY_ENDPOINTS: dict[str, tuple[str, str]] = {
    "duration": ("duration", "duration"),
    "limit": ("limit", "limit"),
    "sessionsLimit": ("max-sessions", "limit"),
    "passwordDictionary": ("password-dictionary", "enabled"),
    "passwordHistory": ("password-history", "limit"),
    "personalDataCheck": ("personal-data", "enabled"),
    "sessionAlerts": ("session-alerts", "alerts"),
    "mockNumbers": ("mock-numbers", "numbers"),
}


class ProjectsService:
    """Project settings API (console scope)."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_project(self, project_id: str) -> Document:
        return await self._client.call("GET", f"/projects/{project_id}")

    async def update_project(self, project_id: str, name: str) -> Document:
        return await self._client.call("PATCH", f"/projects/{project_id}", json={"name": name})

    async def update_service_status(self, project_id: str, service: str, status: bool) -> Document:
        body = {"service": service, "status": status}
        return await self._client.call("PATCH", f"/projects/{project_id}/service", json=body)

    async def update_auth_status(self, project_id: str, method: str, status: bool) -> Document:
        return await self._client.call("PATCH", f"/projects/{project_id}/auth/{method}", json={"status": status})

    async def update_auth_security(self, project_id: str, setting: str, value: Any) -> Document:
        if setting not in AUTH_SECURITY_ENDPOINTS:
            raise ValueError(f"Unknown auth security setting: {setting}")
        segment, field = AUTH_SECURITY_ENDPOINTS[setting]
        path = f"/projects/{project_id}/auth/{segment}"
        return await self._client.call("PATCH", path, json={field: value})


class ProxyService:
    """Proxy rules API."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def create_function_rule(self, domain: str, function_id: str) -> Document:
        body = {"domain": domain, "functionId": function_id}
        return await self._client.call("POST", "/proxy/rules/function", json=body)

    async def list_rules(self, queries: list[str] | None = None) -> Document:
        return await self._client.call("GET", "/proxy/rules", params={"queries": queries})


class ConsoleService:
    """Console metadata API."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def variables(self) -> Document:
        return await self._client.call("GET", "/console/variables")
