"""
Map field placements from preview-surface pixels onto the output page.

The captured raster of the preview is scaled uniformly to fit inside the page
and centred on it. Field positions are taken as fractions of the live preview
surface (not the capture, whose pixel size depends on capture-time scaling)
and projected onto the rendered area.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from esign.core.config import (
    CAPTURE_DENSITY_PX_PER_MM,
    DEFAULT_FIELD_HEIGHT_MM,
    DEFAULT_FIELD_WIDTH_MM,
    DEFAULT_PAGE_NUMBER,
    PAGE_HEIGHT_MM,
    PAGE_WIDTH_MM,
)
from esign.core.exceptions import DegenerateSurfaceError
from esign.models.domain import FieldPlacement, PageCoordinate


@dataclass(frozen=True, slots=True)
class Size:
    width: float
    height: float


A4 = Size(PAGE_WIDTH_MM, PAGE_HEIGHT_MM)


@dataclass(frozen=True, slots=True)
class PageFit:
    """How the captured raster sits on the page, in page units."""

    scale: float
    rendered_width: float
    rendered_height: float
    offset_x: float
    offset_y: float


@dataclass(frozen=True, slots=True)
class PageLayout:
    fit: PageFit
    page: Size
    coordinates: tuple[PageCoordinate, ...]


def _require_area(name: str, size: Size) -> None:
    # NaN fails both comparisons, so it is rejected too
    if not (size.width > 0 and size.height > 0):
        raise DegenerateSurfaceError(name, size.width, size.height)


def fit_capture(
    capture: Size,
    page: Size = A4,
    density: float = CAPTURE_DENSITY_PX_PER_MM,
) -> PageFit:
    """Fit a captured raster into the page, preserving its aspect ratio.

    Args:
        capture: Pixel size of the captured raster image
        page: Output page size in page units
        density: Capture pixels per page unit

    Returns:
        PageFit with the uniform scale, rendered size and centring offsets

    Raises:
        DegenerateSurfaceError: If capture, page or density has no extent
    """
    _require_area("capture", capture)
    _require_area("page", page)
    if not density > 0:
        raise DegenerateSurfaceError("density", density, density)

    natural_width = capture.width / density
    natural_height = capture.height / density

    scale_x = page.width / natural_width
    scale_y = page.height / natural_height
    scale = min(scale_x, scale_y)

    rendered_width = natural_width * scale
    rendered_height = natural_height * scale

    return PageFit(
        scale=scale,
        rendered_width=rendered_width,
        rendered_height=rendered_height,
        offset_x=(page.width - rendered_width) / 2,
        offset_y=(page.height - rendered_height) / 2,
    )


def map_field(
    placement: FieldPlacement,
    surface: Size,
    fit: PageFit,
    field_size: Size = Size(DEFAULT_FIELD_WIDTH_MM, DEFAULT_FIELD_HEIGHT_MM),
) -> PageCoordinate:
    """Project one placement onto the rendered area of the page."""
    _require_area("surface", surface)

    rel_x = placement.x / surface.width
    rel_y = placement.y / surface.height

    return PageCoordinate(
        field_id=placement.id,
        recipient_id=placement.recipient_id,
        kind=placement.kind,
        page_number=DEFAULT_PAGE_NUMBER,
        x=fit.offset_x + rel_x * fit.rendered_width,
        y=fit.offset_y + rel_y * fit.rendered_height,
        width=field_size.width,
        height=field_size.height,
    )


def map_fields_to_page(
    placements: Iterable[FieldPlacement],
    surface: Size,
    capture: Size,
    page: Size = A4,
    density: float = CAPTURE_DENSITY_PX_PER_MM,
    field_size: Size = Size(DEFAULT_FIELD_WIDTH_MM, DEFAULT_FIELD_HEIGHT_MM),
) -> PageLayout:
    """Map every placement from preview pixels to page coordinates.

    Args:
        placements: Field placements relative to the live preview surface
        surface: Pixel size of the live preview surface at capture time
        capture: Pixel size of the captured raster image
        page: Output page size in page units (default A4 in millimetres)
        density: Capture pixels per page unit
        field_size: Size assigned to every mapped field, in page units

    Returns:
        PageLayout holding the fit and one PageCoordinate per placement,
        in input order

    Raises:
        DegenerateSurfaceError: If the surface or capture has zero width/height
    """
    _require_area("surface", surface)
    fit = fit_capture(capture, page, density)
    coordinates = tuple(map_field(p, surface, fit, field_size) for p in placements)
    return PageLayout(fit=fit, page=page, coordinates=coordinates)
