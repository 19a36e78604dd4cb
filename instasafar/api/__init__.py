"""REST access to the InstaSafar backend."""

from instasafar.api.client import AdminOverview, BookingApiClient, Profile
from instasafar.api.http_client import ApiHttpClient

__all__ = ["ApiHttpClient", "BookingApiClient", "AdminOverview", "Profile"]
