from datetime import datetime

from pydantic import BaseModel


class URLMapping(BaseModel):
    short_code: str
    long_url: str
    created_at: datetime
