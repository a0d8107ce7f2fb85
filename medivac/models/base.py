"""Base model configuration for all wire and config structures."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Base model with standard configuration.

    Fields are snake_case in Python and accept their camelCase aliases, which
    is how the on-device runtime names them.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)
