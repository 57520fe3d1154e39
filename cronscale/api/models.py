from typing import Dict, List, Optional
from enum import Enum
from pydantic import BaseModel, Field, validator

from ..monitoring.metrics import TimestampedMetric

class ScaleDirection(Enum):
    """Direction of a scaling action."""
    NONE = "none"
    UP = "up"
    DOWN = "down"

class StrategyDefinition(BaseModel):
    """Strategy block of a scaling check."""
    name: str = "cron"
    config: Dict[str, str] = Field(default_factory=dict)

class ScalingCheck(BaseModel):
    """A named scaling check."""
    name: str
    strategy: StrategyDefinition = Field(default_factory=StrategyDefinition)

class ScalingAction(BaseModel):
    """Action produced by a strategy run."""
    count: Optional[int] = None
    direction: ScaleDirection = ScaleDirection.NONE
    reason: Optional[str] = None

    @validator('count')
    def validate_count(cls, v):
        if v is not None and v < 0:
            raise ValueError('Count must not be negative')
        return v

    class Config:
        validate_assignment = True

class ScalingCheckEvaluation(BaseModel):
    """A scaling check together with its metrics and the resulting action."""
    check: ScalingCheck
    metrics: List[TimestampedMetric] = Field(default_factory=list)
    action: ScalingAction = Field(default_factory=ScalingAction)
