import logging
from typing import Any, Dict, Optional

import requests

from .models import TokenServiceError


class TokenServiceClient:
    """Client for the token REST service that fronts the chain node.

    Each method maps to one service endpoint. Any rejection (HTTP error,
    transport failure, undecodable body) is raised as TokenServiceError
    carrying the service's own error text when it sent one.
    """

    def __init__(self, base_url: str = "http://localhost:3000",
                 timeout: float = 30,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger(__name__)

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        self.logger.debug(f"{method} {url} {payload or ''}")
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Token service request to {url} failed: {e}")
            raise TokenServiceError(f"Token service unreachable: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.status_code >= 400:
            error = None
            if isinstance(data, dict):
                error = data.get('error')
            message = error or f"HTTP {response.status_code}"
            self.logger.error(f"Token service returned {response.status_code} for {method} {path}: {message}")
            raise TokenServiceError(message, status_code=response.status_code)

        if not isinstance(data, dict):
            raise TokenServiceError(
                f"Unexpected response format from {path}", status_code=response.status_code
            )
        return data

    def _get_field(self, path: str, key: str) -> str:
        data = self._request('GET', path)
        if key not in data:
            raise TokenServiceError(f"Response from {path} is missing '{key}'")
        return str(data[key])

    def get_contract_info(self) -> Dict[str, Any]:
        return self._request('GET', '/contract-info')

    def deploy_contract(self) -> Dict[str, Any]:
        """Deploy the token contract; returns its address and ABI."""
        self.logger.info("Requesting contract deployment...")
        return self._request('POST', '/deploy')

    def get_balance(self, address: str) -> str:
        """Raw token balance (smallest unit) of an address."""
        return self._get_field(f'/balance/{address}', 'balance')

    def transfer(self, from_address: str, to_address: str, amount: str) -> Dict[str, Any]:
        """Submit one token transfer; the response carries transactionHash."""
        return self._request('POST', '/transfer', {
            'from': from_address,
            'to': to_address,
            'amount': str(amount),
        })

    def approve(self, owner: str, spender: str, amount: str) -> Dict[str, Any]:
        return self._request('POST', '/approve', {
            'owner': owner,
            'spender': spender,
            'amount': str(amount),
        })

    def get_allowance(self, owner: str, spender: str) -> str:
        return self._get_field(f'/allowance/{owner}/{spender}', 'allowance')

    def get_total_supply(self) -> str:
        return self._get_field('/total-supply', 'totalSupply')

    def get_token_info(self) -> Dict[str, Any]:
        """Name, symbol, decimals, total supply and address of the token."""
        return self._request('GET', '/token-info')
