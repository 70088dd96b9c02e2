from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

class Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    dateKey: str
    createdAt: str  # ISO8601 UTC, millisecond precision

class Event(Record):
    type: str
    station: str
    zone: Optional[str] = None
    division: Optional[str] = None
    crowd: int
    level: str

class Plan(Record):
    stationName: str
    expectedCrowd: int
    grpStaff: int = 0
    rpfStaff: int = 0
    commercialStaff: int = 0
    trainNumber: Optional[str] = None
    trainType: Optional[str] = None
    trainRoute: Optional[str] = None

class DeleteResponse(BaseModel):
    message: str
    id: str

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    database: str  # disconnected | connected | connecting | disconnecting
    mongodb_connected: bool

class ErrorResponse(BaseModel):
    error: str
    details: Optional[List[str]] = None
    message: Optional[str] = None

class ApiDescription(BaseModel):
    message: str
    version: str
    endpoints: Dict[str, object]
