import logging

from api_client import ApiClient
from errors import DecodeError, ScanError, UpstreamError
from schemas import Item

logger = logging.getLogger(__name__)


class InventoryClient(ApiClient):
    """Product and stock lookup by barcode"""

    service = "inventory"

    def __init__(self, config):
        super().__init__(
            config.api_url,
            headers={
                "Token": config.api_token or "",
                "Authorization": config.api_auth or "",
            },
            timeout=config.request_timeout,
        )

    def fetch_item(self, barcode):
        logger.info("Looking up barcode %s", barcode)
        try:
            result = self._request("GET", self.base_url, params={"barcode": barcode})
        except DecodeError as e:
            logger.warning("Inventory API sent malformed JSON for %s: %s", barcode, e.body)
            raise ScanError(f"could not parse inventory response: {e}") from e
        except UpstreamError as e:
            raise ScanError(f"inventory request failed: {e}") from e

        if result is None:
            logger.warning("Inventory API returned an empty response for barcode %s", barcode)
            raise ScanError("inventory API returned an empty response")
        if not isinstance(result, dict):
            raise ScanError("could not parse inventory response")

        logger.debug("Inventory API response: %s", result)
        try:
            item = Item.from_dict(result)
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning("Inventory API sent an unexpected item for %s: %s", barcode, e)
            raise ScanError("could not parse inventory response") from e
        if item.is_empty():
            logger.info("Barcode %s not found", barcode)
            raise ScanError(f"barcode {barcode} not found")
        return item
