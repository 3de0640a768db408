"""Printable ticket documents.

One A4 page per ticket, rendered with Pillow and saved as a multi-page PDF.
"""

import io
import logging
import time
from collections.abc import Sequence

from PIL import Image, ImageDraw, ImageFont

from ticketing.conf import ticketing_settings
from ticketing.domain.errors import DocumentGenerationError
from ticketing.domain.models import EventBatch, IndividualTicket
from ticketing.services.qr_renderer import QRRenderer, decode_data_uri
from ticketing.stores.interfaces import DocumentStore

logger = logging.getLogger(__name__)

PAGE_SIZE = (827, 1169)  # A4 at 100 dpi
MARGIN = 60
QR_SIDE = 320


def _event_heading(batch: EventBatch) -> str:
    event = batch.event
    if event.home_team and event.away_team:
        return f"{event.home_team} vs {event.away_team}"
    return event.title


class TicketDocumentRenderer:
    """Lays out ticket pages and writes them as a PDF."""

    def __init__(self, qr_renderer: QRRenderer | None = None) -> None:
        self._qr_renderer = qr_renderer or QRRenderer(size=QR_SIDE)
        self._font = ImageFont.load_default()

    def render(self, batch: EventBatch, tickets: Sequence[IndividualTicket]) -> bytes:
        if not tickets:
            raise DocumentGenerationError("No tickets provided for PDF generation")
        pages = [self._page(batch, ticket) for ticket in sorted(tickets, key=lambda t: t.ticket_number)]
        buffer = io.BytesIO()
        pages[0].save(buffer, format="PDF", save_all=True, append_images=pages[1:], resolution=100.0)
        return buffer.getvalue()

    def _page(self, batch: EventBatch, ticket: IndividualTicket) -> Image.Image:
        page = Image.new("RGB", PAGE_SIZE, "white")
        draw = ImageDraw.Draw(page)
        event = batch.event

        lines = [_event_heading(batch)]
        if event.competition:
            lines.append(event.competition)
        if event.description:
            lines.append(event.description)
        schedule = " ".join(part for part in (event.event_date, event.event_start_time) if part)
        if event.event_end_time:
            schedule = f"{schedule} - {event.event_end_time}" if schedule else event.event_end_time
        if schedule:
            lines.append(schedule)
        if event.stadium_name:
            lines.append(event.stadium_name)
        lines.append("")
        lines.append(f"Ticket #{ticket.ticket_number}")
        if ticket.tier_name:
            lines.append(f"Tier: {ticket.tier_name}")
        if ticket.price is not None:
            lines.append(f"Price: {ticket.price}")
        seat = " / ".join(
            part for part in (ticket.seat_section, ticket.seat_row, ticket.seat_number) if part
        )
        if seat:
            lines.append(f"Seat: {seat}")
        if ticket.is_used:
            lines.append(f"USED {ticket.validated_at:%Y-%m-%d %H:%M}" if ticket.validated_at else "USED")

        y = MARGIN
        for line in lines:
            draw.text((MARGIN, y), line, fill="black", font=self._font)
            y += 24

        qr = self._qr_image(ticket)
        page.paste(qr, ((PAGE_SIZE[0] - QR_SIDE) // 2, y + 40))
        draw.rectangle(
            (MARGIN // 2, MARGIN // 2, PAGE_SIZE[0] - MARGIN // 2, y + QR_SIDE + 80),
            outline="black",
            width=2,
        )
        draw.text((MARGIN, y + QR_SIDE + 100), ticket.code, fill="gray", font=self._font)
        return page

    def _qr_image(self, ticket: IndividualTicket) -> Image.Image:
        if ticket.qr_image:
            image = Image.open(io.BytesIO(decode_data_uri(ticket.qr_image)))
            return image.convert("RGB").resize((QR_SIDE, QR_SIDE), Image.Resampling.NEAREST)
        return self._qr_renderer.render_image(ticket.qr_payload).convert("RGB")


class DocumentService:
    """Renders a batch's tickets and uploads the PDF."""

    def __init__(self, document_store: DocumentStore, renderer: TicketDocumentRenderer | None = None) -> None:
        self._document_store = document_store
        self._renderer = renderer or TicketDocumentRenderer()

    def generate(self, batch: EventBatch, tickets: Sequence[IndividualTicket] | None = None) -> str:
        """Return the URL of a freshly generated document for ``batch``."""
        tickets = batch.tickets if tickets is None else tickets
        try:
            data = self._renderer.render(batch, tickets)
        except (OSError, ValueError) as exc:
            raise DocumentGenerationError(f"PDF rendering failed: {exc}") from exc

        path = f"{ticketing_settings.DOCUMENT_PREFIX}/{batch.owner_id}/{batch.id}_{int(time.time() * 1000)}.pdf"
        try:
            url = self._document_store.upload(path, data, "application/pdf")
        except Exception as exc:
            raise DocumentGenerationError(f"Storage upload failed: {exc}") from exc
        logger.info(
            "Ticket document generated",
            extra={"batch_id": str(batch.id), "pages": len(tickets), "bytes": len(data)},
        )
        return url
