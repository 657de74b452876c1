from .env_cfg import EnvCfg
from .tracking import CourierReport, TrackingEvent
from .response import TrackingResponse

__all__ = [
    "EnvCfg",
    "CourierReport",
    "TrackingEvent",
    "TrackingResponse",
]
