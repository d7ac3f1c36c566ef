from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """Immutable value record, rebuilt from the source sheet on every read.

    Fields are snake_case in Python and camelCase on the wire.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)
