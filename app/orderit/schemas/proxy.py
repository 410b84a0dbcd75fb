from pydantic import BaseModel


class ProxyErrorResponse(BaseModel):
    success: bool = False
    message: str
    error: str = "Proxy error"
