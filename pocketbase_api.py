from api_client import ApiClient
from errors import UpstreamError


class PocketBaseClient(ApiClient):
    """CRUD against PocketBase record collections with the admin token"""

    service = "pocketbase"

    def __init__(self, config):
        super().__init__(
            config.pocketbase_url,
            headers={"Authorization": f"Bearer {config.pocketbase_admin_token}"},
            timeout=config.request_timeout,
        )

    def _records_url(self, collection, record_id=None):
        url = f"{self.base_url}/api/collections/{collection}/records"
        if record_id:
            url = f"{url}/{record_id}"
        return url

    def create(self, collection, data):
        """Create a record and return its id"""
        result = self._request("POST", self._records_url(collection), ok=(200, 201), json=data)
        record_id = (result or {}).get("id")
        if not isinstance(record_id, str) or not record_id:
            raise UpstreamError(self.service, f"no ID returned from PocketBase, response: {result}")
        return record_id

    def get(self, collection, record_id):
        return self._request("GET", self._records_url(collection, record_id))

    def update(self, collection, record_id, data):
        """Patch a record and return its id"""
        result = self._request(
            "PATCH", self._records_url(collection, record_id), ok=(200, 201), json=data
        )
        return (result or {}).get("id") or record_id

    def delete(self, collection, record_id):
        self._request("DELETE", self._records_url(collection, record_id), ok=(200, 204))

    def list_page(self, collection, page=1, per_page=30, filter=None, timeout=None):
        params = {"page": page, "perPage": per_page}
        if filter:
            params["filter"] = filter
        result = self._request(
            "GET", self._records_url(collection), params=params, timeout=timeout
        )
        if not isinstance(result, dict):
            raise UpstreamError(self.service, f"unexpected list response: {result}")
        return result

    def list_all(self, collection, per_page=30, filter=None, timeout=None):
        """Every record of a collection, fetched page by page"""
        items = []
        page = 1
        while True:
            result = self.list_page(collection, page, per_page, filter=filter, timeout=timeout)
            items.extend(result.get("items") or [])
            if page >= int(result.get("totalPages") or 0):
                break
            page += 1
        return items
