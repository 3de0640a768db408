"""App settings, read from ``settings.TICKETING`` with defaults."""

from django.conf import settings

DEFAULTS = {
    "CHUNK_SIZE": 100,
    "QR_SIZE": 200,
    "QR_BORDER": 2,
    "UNIT_DELAY_SECONDS": 0.0,
    "WEBHOOK_URL": None,
    "WEBHOOK_TIMEOUT": 5.0,
    "CACHE_TIMEOUT": 300,
    "DOCUMENT_PREFIX": "tickets",
    "RUN_RETENTION_SECONDS": 3600,
}


class TicketingSettings:
    """Attribute access to ``TICKETING`` options; re-read on every lookup."""

    def __getattr__(self, name: str):
        if name not in DEFAULTS:
            raise AttributeError(f"Invalid ticketing setting: {name}")
        return getattr(settings, "TICKETING", {}).get(name, DEFAULTS[name])


ticketing_settings = TicketingSettings()
