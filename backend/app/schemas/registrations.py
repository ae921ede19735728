from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

SortField = Literal["created_at", "company_name", "status"]
SortDirection = Literal["asc", "desc"]
Status = Literal["pending", "approved", "rejected"]


class Registration(BaseModel):
    model_config = ConfigDict(extra="ignore", from_attributes=True)

    id: str
    company_name: Optional[str] = None
    ico: Optional[str] = None
    dic: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    psc: Optional[str] = None
    country: Optional[str] = None

    contact_person_name: Optional[str] = None
    contact_person_surname: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    # pending / approved / rejected; kept as str so unknown values still list
    status: str = "pending"
    created_at: Optional[datetime] = None


class RegistrationList(BaseModel):
    items: List[Registration]
    sort: SortField
    direction: SortDirection


class ApprovalResult(BaseModel):
    registration_id: str
    status: Status = "approved"
    company_id: Optional[str] = None
    account_id: Optional[str] = None
    email_sent: bool = False
    # True when the row was already approved and nothing was created
    already_processed: bool = False


class RejectionResult(BaseModel):
    registration_id: str
    status: Status = "rejected"
    already_processed: bool = False


class BoardRow(Registration):
    actions: List[str] = Field(default_factory=list)
    busy: bool = False


class BoardSnapshot(BaseModel):
    rows: List[BoardRow]
    sort: SortField
    direction: SortDirection
    loading: bool
    error: Optional[str] = None
    message: Optional[str] = None
