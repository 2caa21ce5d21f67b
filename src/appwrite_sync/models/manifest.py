"""Manifest models: the declared (desired) state of a project.

Field names are snake_case in Python and camelCase on disk, matching
the remote API payloads so pulled resources validate directly.
Unknown keys are ignored, which whitelists remote payloads.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ManifestModel(BaseModel):
    """Base for every manifest entry."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_payload(self) -> dict[str, Any]:
        """Dump with on-disk (camelCase) keys, dropping unset values."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Attribute(ManifestModel):
    """A collection attribute or table column."""

    key: str
    type: str
    status: str | None = None
    required: bool = False
    array: bool = False
    size: int | None = None
    default: Any = None
    min: int | float | None = None
    max: int | float | None = None
    format: str | None = None
    elements: list[str] | None = None
    related_collection: str | None = None
    related_table: str | None = None
    relation_type: str | None = None
    two_way: bool = False
    two_way_key: str | None = None
    on_delete: str | None = None
    side: str | None = None
    encrypt: bool = False

    @model_validator(mode="after")
    def check_required_default(self) -> "Attribute":
        if self.required and self.default is not None:
            raise ValueError(f"Attribute '{self.key}': when 'required' is true, 'default' must be null")
        return self

    @property
    def is_child_side(self) -> bool:
        """Two-way relationship attributes owned by the related collection."""
        return self.side == "child"


class Index(ManifestModel):
    """A collection or table index."""

    key: str
    type: str
    status: str | None = None
    attributes: list[str] | None = None
    columns: list[str] | None = None
    orders: list[str] | None = None

    @property
    def field_keys(self) -> list[str]:
        """Indexed attribute (or column) keys."""
        return list(self.columns if self.columns is not None else self.attributes or [])


def _check_unique(items: list[Any], what: str, owner: str) -> None:
    seen: set[str] = set()
    for item in items:
        if item.key in seen:
            raise ValueError(
                f"{what} with the key '{item.key}' already exists in '{owner}'. "
                f"{what} keys must be unique, try again with a different key."
            )
        seen.add(item.key)


class Database(ManifestModel):
    """A database holding collections or tables."""

    id: str = Field(alias="$id")
    name: str
    enabled: bool = True


class Collection(ManifestModel):
    """A document collection with its attributes and indexes."""

    id: str = Field(alias="$id")
    permissions: list[str] = Field(default_factory=list, alias="$permissions")
    database_id: str
    name: str
    enabled: bool = True
    document_security: bool = True
    attributes: list[Attribute] = Field(default_factory=list)
    indexes: list[Index] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_keys(self) -> "Collection":
        _check_unique(self.attributes, "Attribute", self.name)
        _check_unique(self.indexes, "Index", self.name)
        return self


class Table(ManifestModel):
    """A table with its columns and indexes."""

    id: str = Field(alias="$id")
    permissions: list[str] = Field(default_factory=list, alias="$permissions")
    database_id: str
    name: str
    enabled: bool = True
    row_security: bool = True
    columns: list[Attribute] = Field(default_factory=list)
    indexes: list[Index] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_keys(self) -> "Table":
        _check_unique(self.columns, "Column", self.name)
        _check_unique(self.indexes, "Index", self.name)
        return self


class Function(ManifestModel):
    """A serverless function and where its code lives."""

    id: str = Field(alias="$id")
    name: str
    runtime: str | None = None
    execute: list[str] = Field(default_factory=list)
    events: list[str] = Field(default_factory=list)
    schedule: str = ""
    timeout: int = 15
    enabled: bool = True
    logging: bool = True
    entrypoint: str | None = None
    commands: str | None = None
    scopes: list[str] = Field(default_factory=list)
    specification: str | None = None
    path: str | None = None
    ignore: list[str] | None = None
    variables: dict[str, str] = Field(default_factory=dict)


class Bucket(ManifestModel):
    """A storage bucket."""

    id: str = Field(alias="$id")
    permissions: list[str] = Field(default_factory=list, alias="$permissions")
    file_security: bool = False
    name: str
    enabled: bool = True
    maximum_file_size: int | None = None
    allowed_file_extensions: list[str] = Field(default_factory=list)
    compression: str = "none"
    encryption: bool = True
    antivirus: bool = True


class Team(ManifestModel):
    """A team."""

    id: str = Field(alias="$id")
    name: str


class Topic(ManifestModel):
    """A messaging topic."""

    id: str = Field(alias="$id")
    name: str
    subscribe: list[str] = Field(default_factory=list)


class Manifest(ManifestModel):
    """The whole project manifest file."""

    project_id: str = ""
    project_name: str = ""
    settings: dict[str, Any] = Field(default_factory=dict)
    databases: list[Database] = Field(default_factory=list)
    collections: list[Collection] = Field(default_factory=list)
    tables_db: list[Database] = Field(
        default_factory=list,
        alias="tablesDB",
        validation_alias=AliasChoices("tablesDB", "tables_db"),
    )
    tables: list[Table] = Field(default_factory=list)
    functions: list[Function] = Field(default_factory=list)
    buckets: list[Bucket] = Field(default_factory=list)
    teams: list[Team] = Field(default_factory=list)
    topics: list[Topic] = Field(default_factory=list)
