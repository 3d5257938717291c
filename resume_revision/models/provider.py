# resume_revision/models/provider.py
from typing import Optional

from pydantic import BaseModel


class ProviderConfig(BaseModel):
    id: str
    name: str = ""
    provider_type: str = "openai"
    is_default: bool = False
    is_active: bool = True
    order: int = 0
    api_key: Optional[str] = None
    api_url: Optional[str] = None
    model_name: Optional[str] = None
    custom_prompt: Optional[str] = None
