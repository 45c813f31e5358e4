from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class HealthLimits(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    requests_per_hour: int = Field(alias="requestsPerHour")
    max_tokens: int = Field(alias="maxTokens")
    timeout_seconds: float = Field(alias="timeoutSeconds")


class HealthResponse(BaseModel):
    status: str = "OK"
    timestamp: datetime
    version: str
    environment: str
    model: str
    limits: HealthLimits
