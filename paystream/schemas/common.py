from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from paystream.utils.security import WALLET_ADDRESS_PATTERN

WalletAddress = Annotated[str, Field(pattern=WALLET_ADDRESS_PATTERN)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelModel):
    total: int
    page: int
    pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        return cls(total=total, page=page, pages=-(-total // limit) if limit else 0)


class RefundSummaryOut(CamelModel):
    refunded: int
    total: int
