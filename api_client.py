import logging

import requests

from errors import DecodeError, UpstreamError

logger = logging.getLogger(__name__)


class ApiClient:
    """Shared plumbing for the JSON APIs we talk to"""

    service = "api"

    def __init__(self, base_url, headers=None, auth=None, timeout=10):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if headers:
            self.session.headers.update(headers)
        if auth:
            self.session.auth = auth

    def _request(self, method, url, ok=(200,), timeout=None, **kwargs):
        """
        Send one request and return the decoded JSON body (None when empty).
        Transport errors, timeouts and unexpected statuses raise UpstreamError;
        a body that is not JSON raises DecodeError.
        """
        logger.debug("%s %s -> %s", self.service, method, url)
        try:
            response = self.session.request(
                method, url, timeout=timeout or self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise UpstreamError(self.service, f"{method} {url} failed: {e}") from e

        if response.status_code not in ok:
            raise UpstreamError(
                self.service,
                f"{method} {url} returned {response.status_code}",
                status=response.status_code,
                body=response.text,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(
                self.service,
                f"{method} {url} returned malformed JSON: {e}",
                status=response.status_code,
                body=response.text,
            ) from e

    def close(self):
        self.session.close()
