from unittest.mock import MagicMock

import pytest
import requests

from lamina.descriptor import ServiceDescriptor
from lamina.layers import parse_layer_catalog


@pytest.fixture
def make_service():
    def _make(functions, region="us-east-1", provider_layers=None, custom=None):
        provider = {"name": "aws", "region": region, "stage": "dev"}
        if provider_layers is not None:
            provider["layers"] = provider_layers
        return ServiceDescriptor(
            {
                "service": "orders",
                "provider": provider,
                "functions": functions,
                "custom": custom or {},
            }
        )

    return _make


@pytest.fixture
def catalog():
    return parse_layer_catalog(
        {
            "regions": {
                "us-east-1": {
                    "nodejs10.x": "node:2",
                    "python3.7": "python:3.7",
                    "python3.9": "python:3.9",
                    "python3.9-arm": "python-arm:3.9",
                    "extension": "extension:11",
                    "extension-arm": "extension-arm:11",
                },
                "us-gov-east-1": {
                    "nodejs10.x": (
                        "arn:aws-us-gov:lambda:us-gov-east-1:002406178527:layer:Node10-x:30"
                    ),
                },
            }
        }
    )


@pytest.fixture
def make_response():
    def _make(status_code=200, json_body=None, reason="OK"):
        response = MagicMock(spec=requests.Response)
        response.status_code = status_code
        response.ok = status_code < 400  # noqa: PLR2004
        response.reason = reason
        response.json.return_value = json_body if json_body is not None else {}
        return response

    return _make


@pytest.fixture
def mock_session(make_response):
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    session.request.return_value = make_response()
    return session
