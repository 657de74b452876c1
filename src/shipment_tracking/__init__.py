# src/shipment_tracking/__init__.py
from .api.normalize import normalize
from .rules.courier_selector import select_best
from .pipelines.tracking_pipeline import TrackingPipeline

__all__ = [
    "normalize",
    "select_best",
    "TrackingPipeline",
]
