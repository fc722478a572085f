import json
from typing import Any

from loguru import logger

from creator_coins.core.clients.MetadataStorageClient import MetadataUploader
from creator_coins.core.errors import MetadataUploadFailed

METADATA_FILENAME = "metadata.json"


def build_metadata_document(
    name: str,
    symbol: str,
    description: str | None = None,
    image: str | None = None,
    external_url: str | None = None,
) -> dict[str, Any]:
    name = (name or "").strip()
    symbol = (symbol or "").strip()
    if not name or not symbol:
        raise ValueError("name and symbol are required")
    description = (description or "").strip() or f"A coin representing {name}"
    doc: dict[str, Any] = {
        "name": name,
        "symbol": symbol,
        "description": description,
        "image": (image or "").strip(),
    }
    if external_url and external_url.strip():
        doc["external_url"] = external_url.strip()
    return doc


def canonical_metadata_bytes(doc: dict[str, Any]) -> bytes:
    return json.dumps(
        doc, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


class MetadataPackager:
    """Uploads a metadata document, falling back to a second pinning service.

    Both uploaders receive byte-identical payloads, so the fallback pins the
    same document the primary would have.
    """

    def __init__(
        self, primary: MetadataUploader, fallback: MetadataUploader | None = None
    ):
        self.primary = primary
        self.fallback = fallback
        self.logger = logger.bind(component="MetadataPackager")

    async def upload_document(self, doc: dict[str, Any]) -> str:
        payload = canonical_metadata_bytes(doc)
        try:
            cid = await self.primary.upload_bytes(payload, filename=METADATA_FILENAME)
            self.logger.info(f"Metadata pinned via {self.primary.name}: {cid}")
            return f"ipfs://{cid}"
        except Exception as primary_exc:
            self.logger.warning(
                f"Metadata upload via {self.primary.name} failed: {primary_exc}"
            )
            if self.fallback is None:
                raise MetadataUploadFailed(primary_exc, None) from primary_exc
            try:
                cid = await self.fallback.upload_bytes(
                    payload, filename=METADATA_FILENAME
                )
            except Exception as fallback_exc:
                self.logger.error(
                    f"Metadata fallback via {self.fallback.name} failed: {fallback_exc}"
                )
                raise MetadataUploadFailed(primary_exc, fallback_exc) from fallback_exc
            self.logger.info(f"Metadata pinned via {self.fallback.name}: {cid}")
            return f"ipfs://{cid}"

    async def upload(
        self,
        name: str,
        symbol: str,
        description: str | None = None,
        image: str | None = None,
        external_url: str | None = None,
    ) -> str:
        doc = build_metadata_document(name, symbol, description, image, external_url)
        return await self.upload_document(doc)
