from datetime import date
from pydantic import BaseModel, ConfigDict


class PersonBase(BaseModel):
    display_name: str
    phone: str | None = None
    birth_date: date | None = None
    member_status: str = "ACTIVE"


class Person(PersonBase):
    id: int
    model_config = ConfigDict(from_attributes=True)
