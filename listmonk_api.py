from api_client import ApiClient
from errors import DecodeError
from schemas import ListmonkSubscriber


class ListmonkClient(ApiClient):
    service = "listmonk"

    def __init__(self, config):
        super().__init__(
            config.listmonk_api_url,
            auth=(config.listmonk_username or "", config.listmonk_api_key or ""),
            timeout=config.request_timeout,
        )
        self.bulk_timeout = config.bulk_timeout

    @property
    def api_root(self):
        """The API base with any trailing /subscribers trimmed"""
        root = self.base_url.rstrip("/")
        if root.endswith("/subscribers"):
            root = root[: -len("/subscribers")]
        return root

    def _subscriber(self, result):
        data = (result or {}).get("data") if isinstance(result, dict) else None
        if not isinstance(data, dict):
            raise DecodeError(self.service, "response has no subscriber data", body=str(result))
        return ListmonkSubscriber.from_dict(data)

    def create_subscriber(self, upsert):
        """Create a subscriber from a SubscriberUpsert payload"""
        result = self._request("POST", self.base_url, ok=(200, 201), json=upsert.to_dict())
        return self._subscriber(result)

    def get_subscriber(self, uid):
        result = self._request("GET", f"{self.base_url}/{uid}")
        return self._subscriber(result)

    def list_subscribers(self, list_id, page=1, per_page=1000):
        """One page of a list's subscribers: (results, total, per_page)"""
        result = self._request(
            "GET",
            f"{self.api_root}/subscribers",
            params={"list_id": list_id, "page": page, "per_page": per_page},
            timeout=self.bulk_timeout,
        )
        data = (result or {}).get("data") if isinstance(result, dict) else None
        if not isinstance(data, dict):
            raise DecodeError(self.service, "subscriber list has no data", body=str(result))
        results = [ListmonkSubscriber.from_dict(row) for row in data.get("results") or []]
        return results, int(data.get("total") or 0), int(data.get("per_page") or per_page)

    def iter_list_members(self, list_id, per_page=1000):
        """Yield every subscriber whose memberships include list_id"""
        page = 1
        while True:
            results, total, page_size = self.list_subscribers(list_id, page, per_page)
            for subscriber in results:
                if subscriber.in_list(list_id):
                    yield subscriber
            if not results or page * page_size >= total:
                break
            page += 1
