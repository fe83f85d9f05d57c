class SyncError(Exception):
    """Base class for everything this service raises on purpose"""


class ConfigError(SyncError):
    """Required settings are missing or unparsable"""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__("Missing or invalid settings: " + ", ".join(self.missing))


class UpstreamError(SyncError):
    """A collaborator was unreachable, timed out or answered non-2xx"""

    def __init__(self, service, message, status=None, body=""):
        self.service = service
        self.status = status
        self.body = body
        super().__init__(f"{service}: {message}")

    def details(self):
        return f"Status: {self.status}, Response: {self.body}"


class DecodeError(UpstreamError):
    """A collaborator answered with a body that is not the JSON we expect"""


class ScanError(SyncError):
    """Barcode lookup failed; the message is shown to the scanner user"""
