from api_client import ApiClient
from errors import DecodeError
from schemas import BonusAward, CustomerProfile


class McrmClient(ApiClient):
    service = "mcrm"

    def __init__(self, config):
        super().__init__(
            config.mcrm_api_url_user,
            headers={"x-api-key": config.mcrm_api_key or ""},
            timeout=config.request_timeout,
        )
        self.user_url = config.mcrm_api_url_user
        self.bonus_url = config.mcrm_api_url_bonus

    def lookup(self, serial):
        """Find the customer a device serial is registered to"""
        result = self._request("POST", self.user_url, json={"number": serial})
        if not isinstance(result, dict):
            raise DecodeError(self.service, "customer lookup returned no object", body=str(result))
        return CustomerProfile.from_dict(result)

    def award_bonus(self, phone, amount):
        """Credit a loyalty bonus to the customer card behind a phone number"""
        payload = BonusAward(number=phone, sum=amount)
        return self._request("POST", self.bonus_url, json=payload.to_dict())
