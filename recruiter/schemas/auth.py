from typing import Optional
from pydantic import BaseModel

class LoginRequest(BaseModel):
    username: str
    password: str

class SessionResponse(BaseModel):
    success: bool = True
    username: Optional[str] = None
