from pydantic import BaseModel, ConfigDict


class RequestModel(BaseModel):
    """
    Base for inbound payloads: unknown keys are rejected, camelCase
    aliases and python names are both accepted.
    """

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        str_strip_whitespace=True,
    )
