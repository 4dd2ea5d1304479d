"""Browser-suite helpers: page objects, pixel probes and state screenshots."""

from .canvas import (
    canvas_is_blank,
    count_colored_pixels,
    count_opaque_pixels,
    count_svg_elements,
    has_pixels_in_region,
    sample_pixel,
    svg_attribute_values,
)
from .page import DemoPage
from .screenshots import CaptureStep, capture_states

__all__ = [
    "CaptureStep",
    "DemoPage",
    "canvas_is_blank",
    "capture_states",
    "count_colored_pixels",
    "count_opaque_pixels",
    "count_svg_elements",
    "has_pixels_in_region",
    "sample_pixel",
    "svg_attribute_values",
]
