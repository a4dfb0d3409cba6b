from pydantic import BaseModel


class FieldErrorOut(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: list[FieldErrorOut] = []


class StatusResponse(BaseModel):
    success: bool = True
    message: str
