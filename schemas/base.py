from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Поля в snake_case, в JSON - camelCase (taskId, userIds, ...)"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
