"""
API gateway and provider fetcher for Booster.
"""
import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import aiohttp
import async_timeout
import backoff

from booster.config import Config, config as default_config
from booster.core.errors import ConfigError, GatewayMissing, InvalidShape, Transport
from booster.core.models import ProviderConfig
from booster.core.record import is_record_list

# Configure logging
logger = logging.getLogger(__name__)

ITEM_LIST_KEYS = ['articles', 'news', 'items', 'products', 'data', 'results']
NEXT_PAGE_KEYS = ['nextPage', 'next_page']


class HttpApiGateway:
    """
    Calls third-party JSON APIs described in the gateway.apis config.

    Each API entry has a base_url, optional api_key with api_key_param (query)
    or api_key_header, optional headers, and an endpoints mapping whose
    values are either a path or {path, params}.
    """
    def __init__(self, config: Optional[Config] = None):
        config = config or default_config
        self.apis: Dict[str, Dict] = config.get('gateway.apis', {}) or {}
        self.timeout = float(config.get('gateway.timeout_seconds', 20))
        self.max_tries = max(1, int(config.get('gateway.max_tries', 2)))
        self._session = None
        self._get = backoff.on_exception(
            backoff.expo,
            (aiohttp.ClientConnectionError, asyncio.TimeoutError),
            max_tries=self.max_tries,
        )(self._get_once)

    @property
    def session(self):
        """
        Lazy initialization of aiohttp session.

        Returns:
            aiohttp.ClientSession: The HTTP session
        """
        if self._session is None:
            self._session = aiohttp.ClientSession(headers={'Accept': 'application/json'})
        return self._session

    async def close_session(self):
        """Close aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    def build_request(self, api_id: str, endpoint_id: str, args: Optional[Dict] = None):
        """
        Resolve the URL, query params and headers for an endpoint.

        Raises:
            ConfigError: if the API or endpoint is not configured
        """
        api = self.apis.get(api_id)
        if not isinstance(api, dict) or not api.get('base_url'):
            raise ConfigError(f"API '{api_id}' is not configured in gateway.apis")

        endpoints = api.get('endpoints') or {}
        endpoint = endpoints.get(endpoint_id)
        if endpoint is None:
            raise ConfigError(f"Endpoint '{endpoint_id}' is not configured for API '{api_id}'")
        if isinstance(endpoint, str):
            endpoint = {'path': endpoint}

        url = api['base_url'].rstrip('/') + '/' + str(endpoint.get('path', endpoint_id)).lstrip('/')
        params = dict(api.get('params') or {})
        params.update(endpoint.get('params') or {})
        params.update(args or {})
        headers = dict(api.get('headers') or {})

        api_key = api.get('api_key')
        if api_key:
            if api.get('api_key_header'):
                headers[api['api_key_header']] = api_key
            else:
                params[api.get('api_key_param', 'apiKey')] = api_key

        return url, {k: str(v) for k, v in params.items() if v is not None}, headers

    async def _get_once(self, url: str, params: Dict, headers: Dict) -> Any:
        async with async_timeout.timeout(self.timeout):
            async with self.session.get(url, params=params, headers=headers) as response:
                response.raise_for_status()
                return await response.json(content_type=None)

    async def call(self, api_id: str, endpoint_id: str, args: Optional[Dict] = None) -> Any:
        """
        Call a configured endpoint and return the decoded JSON body.
        """
        url, params, headers = self.build_request(api_id, endpoint_id, args)
        logger.debug(f"GET {url} for {api_id}/{endpoint_id}")
        return await self._get(url, params, headers)


def items_list_key(response: Dict) -> Optional[str]:
    """Key of the items list in a mapping response, if one can be identified."""
    for key in ITEM_LIST_KEYS:
        if isinstance(response.get(key), list):
            return key
    for key, value in response.items():
        if is_record_list(value):
            return key
    return None


def next_page_token(response: Any) -> Optional[Any]:
    if not isinstance(response, dict):
        return None
    for key in NEXT_PAGE_KEYS:
        token = response.get(key)
        if token not in (None, '', False):
            return token
    return None


def merge_pages(first: Any, following: Any) -> Any:
    """
    Merge a following page into the first one.

    Only the items list is concatenated; every other key keeps its value from
    the first page. Pages whose items list cannot be identified are not
    merged.
    """
    if isinstance(first, list):
        if isinstance(following, list):
            return first + following
        return first

    key = items_list_key(first)
    if key is None:
        logger.warning("Cannot merge paginated response: no items list found on first page")
        return first

    if isinstance(following, list):
        extra: List = following
    elif isinstance(following, dict) and isinstance(following.get(key), list):
        extra = following[key]
    else:
        logger.warning(f"Cannot merge paginated response: following page has no '{key}' list")
        return first

    merged = dict(first)
    merged[key] = list(first[key]) + list(extra)
    return merged


class Fetcher:
    """
    Fetches one provider's raw response through the API gateway.
    """
    def __init__(self, gateway=None, config: Optional[Config] = None,
                 logger: Optional[logging.Logger] = None):
        config = config or default_config
        self.gateway = gateway
        self.max_pages = max(1, int(config.get('gateway.max_pages', 5)))
        self.logger = logger or logging.getLogger(__name__)

    async def fetch(self, provider: ProviderConfig, args: Optional[Dict] = None) -> Any:
        """
        Fetch the raw response for a provider, following pagination.

        Args:
            provider: The provider to fetch
            args: Extra query arguments

        Returns:
            The decoded response, with paginated item lists merged

        Raises:
            ConfigError: api_id or endpoint_id is empty
            GatewayMissing: no gateway is available
            InvalidShape: the first page is empty or not a container
            Transport: the gateway call failed
        """
        if not provider.api_id or not provider.endpoint_id:
            raise ConfigError(f"Missing API ID or Endpoint ID for provider '{provider.key}'")
        if self.gateway is None:
            raise GatewayMissing("API gateway not available", provider.key)

        call_args = dict(provider.args)
        call_args.update(args or {})

        response = await self._call(provider, call_args)

        pages = 1
        seen_tokens = set()
        token = next_page_token(response)
        while token is not None and pages < self.max_pages and str(token) not in seen_tokens:
            seen_tokens.add(str(token))
            page_args = dict(call_args)
            page_args['page'] = token
            try:
                page = await self._call(provider, page_args)
            except (InvalidShape, Transport) as e:
                self.logger.warning(f"Stopped pagination for {provider.key} at page {token}: {e}")
                break
            response = merge_pages(response, page)
            token = next_page_token(page)
            pages += 1

        return response

    async def _call(self, provider: ProviderConfig, args: Dict) -> Any:
        request_args = {'timestamp': int(time.time())}
        request_args.update(args)
        try:
            response = await self.gateway.call(provider.api_id, provider.endpoint_id, request_args)
        except ConfigError:
            raise
        except Exception as e:
            raise Transport(f"Error fetching from {provider.key}: {e or type(e).__name__}", provider.key) from e

        if not response or not isinstance(response, (dict, list)):
            raise InvalidShape(f"Empty or invalid response from {provider.key}", provider.key)
        return response
