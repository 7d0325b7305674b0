from unittest.mock import MagicMock

import pytest
import requests

from token_dapp.models import TokenServiceError
from token_dapp.token_service import TokenServiceClient

from .conftest import ADDR_A, ADDR_B


def make_response(status_code=200, payload=None, json_error=False):
    response = MagicMock()
    response.status_code = status_code
    if json_error:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


def make_client(response=None, side_effect=None):
    session = MagicMock()
    if side_effect is not None:
        session.request.side_effect = side_effect
    else:
        session.request.return_value = response
    return TokenServiceClient("http://localhost:3000/", timeout=5, session=session), session


def test_transfer_posts_body_and_returns_hash():
    client, session = make_client(make_response(payload={"transactionHash": "0xfeed"}))

    result = client.transfer(ADDR_A, ADDR_B, 100)

    assert result == {"transactionHash": "0xfeed"}
    session.request.assert_called_once_with(
        "POST", "http://localhost:3000/transfer",
        json={"from": ADDR_A, "to": ADDR_B, "amount": "100"}, timeout=5,
    )


def test_get_endpoints():
    client, session = make_client(make_response(payload={"balance": "1000000000000000000"}))
    assert client.get_balance(ADDR_A) == "1000000000000000000"
    assert session.request.call_args[0] == ("GET", f"http://localhost:3000/balance/{ADDR_A}")

    client, session = make_client(make_response(payload={"allowance": 5, "owner": ADDR_A, "spender": ADDR_B}))
    assert client.get_allowance(ADDR_A, ADDR_B) == "5"
    assert session.request.call_args[0] == ("GET", f"http://localhost:3000/allowance/{ADDR_A}/{ADDR_B}")

    client, _ = make_client(make_response(payload={"totalSupply": "1000"}))
    assert client.get_total_supply() == "1000"


def test_error_payload_becomes_service_error():
    client, _ = make_client(make_response(500, {"error": "Returned error: sender account not recognized"}))

    with pytest.raises(TokenServiceError) as excinfo:
        client.transfer(ADDR_A, ADDR_B, "1")

    assert str(excinfo.value) == "Returned error: sender account not recognized"
    assert excinfo.value.status_code == 500


def test_error_without_body():
    client, _ = make_client(make_response(502, json_error=True))

    with pytest.raises(TokenServiceError) as excinfo:
        client.get_token_info()

    assert str(excinfo.value) == "HTTP 502"


def test_transport_failure():
    client, _ = make_client(side_effect=requests.exceptions.ConnectionError("refused"))

    with pytest.raises(TokenServiceError) as excinfo:
        client.get_contract_info()

    assert "unreachable" in str(excinfo.value)


def test_missing_field_and_bad_format():
    client, _ = make_client(make_response(payload={"other": 1}))
    with pytest.raises(TokenServiceError):
        client.get_balance(ADDR_A)

    client, _ = make_client(make_response(payload=["not", "an", "object"]))
    with pytest.raises(TokenServiceError):
        client.deploy_contract()
