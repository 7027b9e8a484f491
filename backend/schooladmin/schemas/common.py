from pydantic import BaseModel


class DeliveryResultResponse(BaseModel):
    success: bool
    message: str
