"""dag-canvas — automatic layout for pipeline DAG editors."""

from .engine import apply_best_layout, compute_layout
from .layered import GrandalfBackend, LayeredBackend, LayeredLayoutEngine, LayoutBackendError
from .models import Edge, FitResult, LayoutOptions, Node, PipelineGraph, Position, ViewSize
from .overlap import resolve_overlaps
from .strategy import Strategy, select_strategy
from .viewport import fit_to_viewport

__all__ = [
    "Edge",
    "FitResult",
    "GrandalfBackend",
    "LayeredBackend",
    "LayeredLayoutEngine",
    "LayoutBackendError",
    "LayoutOptions",
    "Node",
    "PipelineGraph",
    "Position",
    "Strategy",
    "ViewSize",
    "apply_best_layout",
    "compute_layout",
    "fit_to_viewport",
    "resolve_overlaps",
    "select_strategy",
]
