# FILE: ipd_billing/pdf/paginator.py
"""
Splits a tall rendered invoice bitmap into printable pages.

All placement values are in page units (points); bitmap values are pixels.
Page coordinates here are measured from the top-left corner of the page, the
way the content is laid out; the PDF writer flips them for reportlab.

    scale            = page_width / bitmap_width
    content_height   = page_height - margin_top - margin_bottom
    band (pixels)    = floor(content_height / scale)
    pages            = ceil(bitmap_height / band), at least 1
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from PIL import Image

from ipd_billing.core.config import settings
from ipd_billing.core.errors import InvalidInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageGeometry:
    page_width: float = 595
    page_height: float = 842
    margin_top: float = 120
    margin_bottom: float = 80
    margin_side: float = 20

    def __post_init__(self):
        for name in ("page_width", "page_height", "margin_top",
                     "margin_bottom", "margin_side"):
            v = getattr(self, name)
            if not isinstance(v, (int, float)) or isinstance(v, bool) \
                    or not math.isfinite(v) or v < 0:
                raise InvalidInput(f"Invalid page geometry {name}={v!r}")
        if self.page_width <= 0:
            raise InvalidInput("Page width must be > 0")
        if self.content_height <= 0:
            raise InvalidInput("Margins leave no room for content")
        if self.content_width <= 0:
            raise InvalidInput("Side margins leave no room for content")

    @property
    def content_height(self) -> float:
        return self.page_height - self.margin_top - self.margin_bottom

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin_side

    @classmethod
    def from_settings(cls) -> "PageGeometry":
        return cls(
            page_width=settings.PDF_PAGE_WIDTH,
            page_height=settings.PDF_PAGE_HEIGHT,
            margin_top=settings.PDF_MARGIN_TOP,
            margin_bottom=settings.PDF_MARGIN_BOTTOM,
            margin_side=settings.PDF_MARGIN_SIDE,
        )


A4_PORTRAIT = PageGeometry()


@dataclass(frozen=True)
class PageBand:
    """One page worth of the source bitmap: rows [src_top, src_bottom)."""
    index: int
    src_top: int
    src_bottom: int
    x: float
    y: float
    width: float
    height: float

    @property
    def src_height(self) -> int:
        return self.src_bottom - self.src_top


@dataclass
class Page:
    number: int
    geometry: PageGeometry
    band: PageBand
    header: Optional[Image.Image]
    # None when the band is empty (zero-height bitmap)
    content: Optional[Image.Image]


def source_band_height(bitmap_width: int, geometry: PageGeometry) -> int:
    if not isinstance(bitmap_width, int) or bitmap_width <= 0:
        raise InvalidInput("Bitmap width must be > 0")
    # content_height / (page_width / W), written without the intermediate division
    band = math.floor(geometry.content_height * bitmap_width / geometry.page_width)
    if band < 1:
        raise InvalidInput("Bitmap too narrow for the page geometry")
    return band


def plan_bands(bitmap_width: int, bitmap_height: int,
               geometry: PageGeometry = A4_PORTRAIT) -> List[PageBand]:
    band_px = source_band_height(bitmap_width, geometry)
    if not isinstance(bitmap_height, int) or bitmap_height < 0:
        raise InvalidInput("Bitmap height must be >= 0")

    scale = geometry.page_width / bitmap_width
    bands: List[PageBand] = []
    cursor = 0
    while True:
        bottom = min(cursor + band_px, bitmap_height)
        bands.append(
            PageBand(
                index=len(bands),
                src_top=cursor,
                src_bottom=bottom,
                x=geometry.margin_side,
                y=geometry.margin_top,
                width=geometry.content_width,
                # partial last band keeps its own height, never stretched
                height=(bottom - cursor) * scale,
            ))
        cursor += band_px
        if cursor >= bitmap_height:
            break
    return bands


def paginate(bitmap: Image.Image,
             header: Optional[Image.Image] = None,
             geometry: PageGeometry = A4_PORTRAIT) -> List[Page]:
    """
    Cuts `bitmap` into pages; every page reuses the same header image.
    Raises on any failure; a partial page list is never returned.
    """
    width, height = bitmap.size
    bands = plan_bands(width, height, geometry)

    pages: List[Page] = []
    for band in bands:
        content = None
        if band.src_height > 0:
            content = bitmap.crop((0, band.src_top, width, band.src_bottom))
        pages.append(
            Page(
                number=band.index + 1,
                geometry=geometry,
                band=band,
                header=header,
                content=content,
            ))

    logger.info("Paginated %dx%d bitmap into %d page(s)", width, height,
                len(pages))
    return pages
