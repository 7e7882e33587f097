"""
PersistedCatalogState model representing the stored catalog snapshot of a data source.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class PersistedCatalogState(BaseModel):
    """
    Row of the persisted-catalog store, keyed by data source id.

    Note: the snapshot never invalidates itself; whether to reuse it is
    decided per request by the freshness planner.

    Attributes:
        transformed_data: JSON-serialized catalog (or field-mapped array), if any
        transformed_at: When transformed_data was last written
        record_count: Record count recorded at the last write
        transformation_applied_at: When field mappings (or an API refresh) last touched the data
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    transformed_data: str | None = None
    transformed_at: datetime | None = None
    record_count: int | None = None
    transformation_applied_at: datetime | None = None

    @property
    def has_transformed_data(self) -> bool:
        return bool(self.transformed_data and self.transformed_data.strip())
