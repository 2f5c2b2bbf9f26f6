import pytest
from unittest.mock import patch

from zendesk_csat_attribution.client import ZendeskClient
from zendesk_csat_attribution.config import Settings


@pytest.fixture
def settings():
    return Settings(
        zendesk_subdomain="demo",
        zendesk_email="agent@example.com",
        zendesk_api_key="token",
        owner_name="Ahmed Anwar",
        owner_email="ahmed@example.com",
        backfill_delay=0,
    )


@pytest.fixture
def zendesk_client():
    """A real ZendeskClient whose zenpy handle is a MagicMock."""
    with patch('zendesk_csat_attribution.client.base.Zenpy'):
        client = ZendeskClient(
            subdomain='test',
            email='test@example.com',
            token='test_token'
        )
        return client
