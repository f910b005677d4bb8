"""Read-only Salesforce REST query client."""

import json
from typing import Any

import httpx
from opentelemetry.trace import Status, StatusCode

from ..config import get_settings
from ..errors import CrmQueryError
from ..tracing import get_tracer


def escape_soql_value(value: str) -> str:
    """Escape a value for interpolation inside a quoted SOQL literal."""
    return str(value).replace("\0", "").replace("\\", "\\\\").replace("'", "\\'")


class SalesforceClient:
    """Runs SOQL queries against the Salesforce REST API."""

    def __init__(
        self,
        instance_url: str | None = None,
        access_token: str | None = None,
        api_version: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.instance_url = (instance_url or settings.salesforce_instance_url).rstrip("/")
        self.api_version = api_version or settings.salesforce_api_version
        self.headers = {
            "Authorization": f"Bearer {access_token or settings.salesforce_access_token}",
            "Accept": "application/json",
        }
        self.timeout = timeout or settings.upstream_timeout_seconds
        self.transport = transport
        self.tracer = get_tracer("salesforce-client")

    async def query(self, soql: str) -> dict[str, Any]:
        """Run a SOQL query and return ``{"totalSize": n, "records": [...]}``.

        Follows ``nextRecordsUrl`` until all pages are read.

        Raises:
            CrmQueryError: If Salesforce rejects the query or cannot be reached
        """
        with self.tracer.start_as_current_span(
            "salesforce_query",
            attributes={
                "input.value": soql,
                "input.mime_type": "text/plain",
                "openinference.span.kind": "tool",
            },
        ) as span:
            records: list[dict] = []
            url = f"{self.instance_url}/services/data/{self.api_version}/query"
            params: dict | None = {"q": soql}

            try:
                async with httpx.AsyncClient(transport=self.transport) as client:
                    while url:
                        response = await client.get(
                            url, headers=self.headers, params=params, timeout=self.timeout
                        )
                        if response.status_code != 200:
                            raise CrmQueryError(response.status_code, response.text)

                        data = response.json()
                        records.extend(data.get("records", []))

                        next_url = data.get("nextRecordsUrl")
                        url = f"{self.instance_url}{next_url}" if next_url else None
                        params = None

            except httpx.TimeoutException as e:
                error = CrmQueryError(None, f"Request timed out after {self.timeout} seconds")
                span.set_status(Status(StatusCode.ERROR, error.message))
                raise error from e
            except httpx.RequestError as e:
                error = CrmQueryError(None, f"Connection error: {e}")
                span.set_status(Status(StatusCode.ERROR, error.message))
                raise error from e
            except CrmQueryError as e:
                span.set_status(Status(StatusCode.ERROR, e.message))
                span.record_exception(e)
                raise

            span.set_attribute("output.value", json.dumps({"totalSize": len(records)}))
            span.set_status(Status(StatusCode.OK))
            return {"totalSize": len(records), "records": records}
