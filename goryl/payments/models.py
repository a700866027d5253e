from typing import Any, Dict, Literal, Optional, Union
from pydantic import BaseModel, Field


class WithdrawRequestIn(BaseModel):
    amount: int = Field(..., description="Amount in cents")
    payment_method: Optional[str] = None
    note: Optional[str] = None


class ProcessWithdrawIn(BaseModel):
    action: str
    reason: Optional[str] = None
    transaction_id: Optional[str] = None
    custom_amount: Optional[int] = Field(None, description="Amount actually paid, in cents")

    def details(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"action"}, exclude_none=True)


class PaymentHoldIn(BaseModel):
    seller_id: str = ""
    seller_name: str = ""
    amount: Optional[int] = Field(None, description="Amount in cents")
    reason: str = ""


class PaymentMethodIn(BaseModel):
    type: Literal["bank", "paypal", "stripe", "crypto"]
    account_name: str = Field(..., min_length=1)
    account_details: Union[str, Dict[str, Any]]


class PaymentMethodUpdateIn(BaseModel):
    account_name: Optional[str] = None
    account_details: Optional[Union[str, Dict[str, Any]]] = None
    is_active: Optional[bool] = None


class SellerPaymentIn(BaseModel):
    amount: Optional[int] = Field(None, description="Amount in cents")
    transaction_id: str = ""
