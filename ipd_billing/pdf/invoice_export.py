# FILE: ipd_billing/pdf/invoice_export.py
from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from ipd_billing.core.config import settings
from ipd_billing.core.errors import InvalidInput
from ipd_billing.pdf.paginator import Page, PageGeometry, paginate

logger = logging.getLogger(__name__)


def load_header(path: Optional[Union[str, Path]]) -> Optional[Image.Image]:
    """Letterhead image, or None (with a warning) when it is not on disk."""
    if not path:
        return None
    p = Path(path)
    if not p.is_absolute():
        p = Path(settings.STORAGE_DIR).joinpath(p)
    if not p.exists():
        logger.warning("Letterhead image not found: %s", p)
        return None
    img = Image.open(p)
    img.load()
    return img


def open_bitmap(raw: bytes) -> Image.Image:
    if not raw:
        raise InvalidInput("Invoice bitmap is empty")
    try:
        img = Image.open(io.BytesIO(raw))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidInput("Invoice bitmap is not a readable image") from e
    return img


def render_pdf(pages: List[Page]) -> bytes:
    """Letterhead over the full page, then the content band inside the margins."""
    if not pages:
        raise InvalidInput("Nothing to render")

    g = pages[0].geometry
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=(g.page_width, g.page_height))

    header_reader = None
    for page in pages:
        if page.header is not None:
            if header_reader is None:
                header_reader = ImageReader(page.header)
            c.drawImage(
                header_reader,
                x=0,
                y=0,
                width=g.page_width,
                height=g.page_height,
                mask="auto",
            )

        band = page.band
        if page.content is not None and band.height > 0:
            c.drawImage(
                ImageReader(page.content),
                x=band.x,
                # reportlab measures y from the bottom edge
                y=g.page_height - band.y - band.height,
                width=band.width,
                height=band.height,
                mask="auto",
            )
        c.showPage()

    c.save()
    return buf.getvalue()


def export_invoice_pdf(
    bitmap_bytes: bytes,
    header_path: Optional[Union[str, Path]] = None,
    geometry: Optional[PageGeometry] = None,
) -> Tuple[bytes, int]:
    """Returns (pdf bytes, page count)."""
    geometry = geometry or PageGeometry.from_settings()
    bitmap = open_bitmap(bitmap_bytes)
    header = load_header(header_path if header_path is not None else
                         settings.LETTERHEAD_PATH)

    pages = paginate(bitmap, header, geometry)
    pdf = render_pdf(pages)
    logger.info("Invoice PDF: %d page(s), %d bytes", len(pages), len(pdf))
    return pdf, len(pages)
