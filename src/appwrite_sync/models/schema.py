"""Schema flavors: the collections API and the tables API.

Both expose the same database → container → attribute/index shape
under different paths and field names. The engine and the gateway are
written once against a flavor.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SchemaFlavor:
    """Naming differences between the collections and tables APIs."""

    name: str
    base_path: str
    container: str
    containers: str
    container_id_param: str
    security_param: str
    attribute: str
    attributes: str
    index_fields_param: str
    related_param: str

    @property
    def attribute_title(self) -> str:
        return self.attribute.capitalize()


COLLECTIONS = SchemaFlavor(
    name="collections",
    base_path="/databases",
    container="collection",
    containers="collections",
    container_id_param="collectionId",
    security_param="documentSecurity",
    attribute="attribute",
    attributes="attributes",
    index_fields_param="attributes",
    related_param="relatedCollectionId",
)

TABLES = SchemaFlavor(
    name="tables",
    base_path="/tablesdb",
    container="table",
    containers="tables",
    container_id_param="tableId",
    security_param="rowSecurity",
    attribute="column",
    attributes="columns",
    index_fields_param="columns",
    related_param="relatedTableId",
)
