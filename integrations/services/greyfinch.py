"""
Greyfinch GraphQL API client.

Greyfinch is the practice-management system of record for patients,
leads, appointments and bookings. The API is a single GraphQL endpoint
(Hasura) authenticated with an API key and secret header pair.

Default endpoint: https://api.greyfinch.com/v1/graphql
"""

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

BASE_URL = "https://api.greyfinch.com/v1/graphql"

PRACTICE_DATA_QUERY = """
query GetPracticeData {
  locations {
    id
    name
    isActive
  }
  patients {
    id
    createdAt
    primaryLocation {
      id
      name
    }
  }
  leads {
    id
    source
    status
    createdAt
    location {
      id
      name
    }
  }
  appointments {
    id
    patientId
    status
    scheduledDate
    createdAt
    location {
      id
      name
    }
  }
  appointmentBookings {
    id
    startTime
    localStartDate
    appointment {
      id
      location {
        id
        name
      }
    }
  }
}
"""

COLLECTIONS = ('locations', 'patients', 'leads', 'appointments', 'appointmentBookings')


class GreyfinchAPIError(Exception):
    """GraphQL-level error returned with an HTTP 200 response."""

    def __init__(self, errors):
        self.errors = errors or []
        messages = '; '.join(str(error.get('message', error)) for error in self.errors if error)
        super().__init__(messages or 'Unknown Greyfinch error')


class GreyfinchClient:
    """
    Client for the Greyfinch GraphQL API.

    Usage:
        client = GreyfinchClient(api_key='xxx', api_secret='yyy')
        data = client.get_practice_data()
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        base_url: Optional[str] = None,
        resource_id: Optional[str] = None,
        resource_token: Optional[str] = None,
        timeout: int = 60,
    ):
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = base_url or BASE_URL
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'Content-Type': 'application/json',
            'Accept': 'application/json',
            'X-API-Key': api_key,
            'X-API-Secret': api_secret,
        })
        if resource_id:
            self.session.headers['x-hasura-public-resource-id'] = resource_id
        if resource_token:
            self.session.headers['x-hasura-public-resource-token'] = resource_token

    def execute(self, query: str, variables: Optional[dict] = None) -> dict:
        """Run a GraphQL query and return its `data` payload."""
        try:
            response = self.session.post(
                self.base_url,
                json={'query': query, 'variables': variables or {}},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Greyfinch API error: {e}")
            raise

        if payload.get('errors'):
            error = GreyfinchAPIError(payload['errors'])
            logger.error(f"Greyfinch GraphQL error: {error}")
            raise error

        return payload.get('data') or {}

    def get_practice_data(self) -> dict:
        """
        Pull every collection analytics needs in one query.

        Returns a dict keyed by collection name, each a list (empty when
        Greyfinch returned nothing for it).
        """
        data = self.execute(PRACTICE_DATA_QUERY)
        return {name: data.get(name) or [] for name in COLLECTIONS}

    def test_connection(self) -> bool:
        """Cheap query to validate credentials."""
        self.execute('query TestConnection { locations { id } }')
        return True
