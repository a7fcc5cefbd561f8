"""camelCase schema bases.

Python code stays snake_case; request and response JSON use camelCase
(``filePaths``, ``isDeleted``, ``ownerIp``) as the frontend expects.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Request bodies. Accepts camelCase or snake_case keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CamelORMModel(CamelModel):
    """Response bodies built from ORM rows."""
    model_config = ConfigDict(from_attributes=True)
