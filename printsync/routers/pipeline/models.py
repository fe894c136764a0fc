from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class CycleResponse(BaseModel):
    status: str
    record_id: Optional[Union[int, str]] = None
    product_id: Optional[str] = None
    stage: Optional[str] = None
    error: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class StatusResponse(BaseModel):
    running: bool
    polling: bool
    counters: Dict[str, int]
    last_result: Optional[CycleResponse] = None
    quarantined: List[str]
    unconfirmed: Dict[str, str]
    capabilities: Dict[str, Dict[str, int]]
