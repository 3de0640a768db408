"""QR image rendering for ticket payloads."""

import base64
import io
import logging

import qrcode
from PIL import Image
from qrcode.exceptions import DataOverflowError
from qrcode.image.pil import PilImage

from ticketing.conf import ticketing_settings
from ticketing.domain.errors import QRRenderError

logger = logging.getLogger(__name__)


class QRRenderer:
    """Turns payload strings into fixed-size PNG data URIs.

    Error correction is level M (roughly 15% of the symbol may be damaged).
    Rendering never returns a blank image: any failure raises QRRenderError.
    """

    def __init__(self, size: int | None = None, border: int | None = None) -> None:
        self.size = size or ticketing_settings.QR_SIZE
        self.border = border if border is not None else ticketing_settings.QR_BORDER

    def render_image(self, payload: str) -> Image.Image:
        if not payload:
            raise QRRenderError("payload is empty")
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=self.border,
            image_factory=PilImage,
        )
        qr.add_data(payload)
        # qrcode 8 raises ValueError on overflow.
        try:
            qr.make(fit=True)
            img = qr.make_image(fill_color="black", back_color="white").get_image()
        except (DataOverflowError, ValueError) as exc:
            raise QRRenderError(f"payload of {len(payload)} characters exceeds QR capacity") from exc
        return img.resize((self.size, self.size), Image.Resampling.NEAREST)

    def render(self, payload: str) -> str:
        """Return a ``data:image/png;base64,...`` URI for ``payload``."""
        img = self.render_image(payload)
        buffer = io.BytesIO()
        try:
            img.save(buffer, format="PNG")
        except OSError as exc:
            raise QRRenderError(str(exc)) from exc
        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        logger.debug("Rendered QR code", extra={"payload_length": len(payload)})
        return f"data:image/png;base64,{encoded}"


def decode_data_uri(data_uri: str) -> bytes:
    """Return the raw bytes behind a base64 data URI."""
    _, _, encoded = data_uri.partition("base64,")
    return base64.b64decode(encoded)
