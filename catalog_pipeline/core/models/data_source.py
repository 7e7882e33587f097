"""
DataSourceRef model representing a registered data source (files, database rows, API payloads).
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

JSON_MIME_TYPE = "application/json"


class FileDescriptor(BaseModel):
    """
    A file attached to a data source configuration.

    Attributes:
        name: Original file name
        type: Declared MIME type
        size: Size in bytes as reported at upload time
        content: Inline content, when the file body is stored with the source
        storage_key: Handle into external blob storage when content is not inline
        last_modified: Client-reported modification time (epoch millis)
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str
    type: str = ""
    size: int = 0
    content: str | None = None
    storage_key: str | None = None
    last_modified: int | None = None

    @property
    def is_json(self) -> bool:
        return self.type == JSON_MIME_TYPE or self.name.lower().endswith(".json")


class SourceConfiguration(BaseModel):
    """
    Configuration payload of a data source.

    Attributes:
        files: Zero or more file descriptors
        data: Rows already materialized by a connector (database/API imports)
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    files: list[FileDescriptor] = Field(default_factory=list)
    data: list[Any] | None = None


class DataSourceRef(BaseModel):
    """
    Read-only view of a data source as consumed by the catalog transformer.

    Attributes:
        id: Data source identifier
        name: Display name
        type: "filesystem", "database", "api", "json_transformed", "s3", ...
        configuration: Files and/or pre-fetched rows
        metadata: Connector metadata (relational import flags, table names, ...)
        record_count: Record count known to the data source entity, if any
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "3f1c9a",
                "name": "Customer export",
                "type": "filesystem",
                "configuration": {
                    "files": [
                        {"name": "customers.csv", "type": "text/csv", "size": 2048, "storageKey": "3f1c9a/customers.csv"}
                    ]
                },
                "recordCount": 120,
            }
        },
    )

    id: str = Field(..., min_length=1)
    name: str
    type: str
    configuration: SourceConfiguration = Field(default_factory=SourceConfiguration)
    metadata: dict[str, Any] = Field(default_factory=dict)
    record_count: int | None = None

    @property
    def is_api(self) -> bool:
        return self.type == "api"

    @property
    def files(self) -> list[FileDescriptor]:
        return self.configuration.files

    def has_only_json_files(self) -> bool:
        """True when at least one file is attached and every file is JSON-typed."""
        return bool(self.files) and all(f.is_json for f in self.files)
