"""
Store management API schemas.

Access tokens are accepted on input only and never echoed back.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AddStoreRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    store_name: str = Field(..., alias="storeName", min_length=1, max_length=255)
    shopify_domain: str = Field(..., alias="shopifyDomain", min_length=1, max_length=255)
    access_token: str = Field(..., alias="accessToken", min_length=1)


class UpdateStoreRequest(BaseModel):
    """Only provided fields are changed."""
    model_config = ConfigDict(populate_by_name=True)

    store_name: Optional[str] = Field(None, alias="storeName", max_length=255)
    access_token: Optional[str] = Field(None, alias="accessToken")


class StoreResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    store_name: str = Field(..., alias="storeName")
    shopify_domain: str = Field(..., alias="shopifyDomain")
    created_at: Optional[datetime] = Field(None, alias="createdAt")


class StoreMutationResponse(BaseModel):
    message: str
    store: StoreResponse


class StoreListResponse(BaseModel):
    stores: List[StoreResponse]


class MessageResponse(BaseModel):
    message: str
