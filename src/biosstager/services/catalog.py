"""Vendor catalog client for the latest BIOS release."""

from typing import Optional
from urllib.parse import quote
import logging

import httpx
from pydantic import ValidationError

from biosstager.errors import CatalogEmpty, CatalogMalformed, CatalogUnavailable
from biosstager.models.config import DEFAULT_CATALOG_URL
from biosstager.models.firmware import BoardIdentity, CatalogResponse, FirmwareRecord


class CatalogClient:
    """Queries the ASUS GetPDBIOS endpoint for a board's latest firmware."""

    def __init__(
        self,
        catalog_url: str = DEFAULT_CATALOG_URL,
        site: str = "global",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize catalog client.

        Args:
            catalog_url: GetPDBIOS endpoint URL
            site: Value of the 'website' query parameter
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.logger = logging.getLogger("biosstager.catalog")
        self.catalog_url = catalog_url
        self.site = site
        self.timeout = timeout
        self.transport = transport

    def build_url(self, product: str) -> str:
        """Build the query URL with the product name URL-escaped."""
        model = quote(product, safe="")
        return f"{self.catalog_url}?website={self.site}&model={model}&pdhas498=1"

    async def query_latest(self, board: BoardIdentity) -> FirmwareRecord:
        """Fetch the latest firmware record for a board.

        Args:
            board: Detected board identity (product is the lookup key)

        Returns:
            FirmwareRecord built from the first catalog file entry

        Raises:
            CatalogUnavailable: On transport errors or non-2xx responses
            CatalogEmpty: If the response lists no firmware
            CatalogMalformed: If the body is not JSON or the entry lacks required fields
        """
        url = self.build_url(board.product)
        self.logger.info(f"Querying ASUS catalog for {board.product}...")
        self.logger.debug(f"Catalog URL: {url}")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            self.logger.error(f"Catalog request failed: {e}")
            raise CatalogUnavailable(
                f"Failed to query catalog: {e}",
                hint="Check network connectivity and try again",
            ) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise CatalogMalformed(f"Catalog response is not JSON: {e}") from e

        try:
            catalog = CatalogResponse.model_validate(payload)
        except ValidationError as e:
            raise CatalogMalformed(f"Unexpected catalog response shape: {e}") from e

        entry = catalog.first_file()
        if entry is None:
            raise CatalogEmpty(
                f"No BIOS information found for {board.product}",
                hint="The catalog lists no firmware for this model",
            )

        download_url = entry.download_url.global_url if entry.download_url else None
        if not entry.version or not download_url:
            raise CatalogMalformed(
                "Catalog entry is missing Version or DownloadUrl.Global"
            )

        record = FirmwareRecord(
            version=entry.version,
            download_url=download_url,
            release_date=entry.release_date,
            title=entry.title,
            description=entry.description,
        )
        self.logger.info(
            f"Latest BIOS: version={record.version}, released={record.release_date}"
        )
        return record
