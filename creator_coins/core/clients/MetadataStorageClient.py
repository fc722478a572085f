import json
from typing import Any, Protocol

from creator_coins.core.clients.ApiClient import ApiClient

ZORA_IPFS_UPLOADER_URL = "https://ipfs-uploader.zora.co/api/v0"
PINATA_API_URL = "https://api.pinata.cloud"


def _extract_cid(payload: dict[str, Any]) -> str:
    for key in ("cid", "Hash", "IpfsHash"):
        value = payload.get(key)
        if value:
            return str(value)
    raise ValueError(f"upload response carries no CID: {payload}")


class MetadataUploader(Protocol):
    name: str

    async def upload_bytes(self, data: bytes, *, filename: str) -> str:
        """Pin ``data`` and return its CID."""
        ...


class IpfsUploadClient(ApiClient):
    name = "ipfs"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = ZORA_IPFS_UPLOADER_URL,
        **kwargs: Any,
    ):
        super().__init__(base_url, api_key=api_key, **kwargs)
        # multipart uploads set their own content type
        self.headers.pop("Content-Type", None)
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"

    async def upload_bytes(self, data: bytes, *, filename: str) -> str:
        response = await self._authed_request(
            "POST",
            "/add",
            params={"cid-version": 1},
            files={"file": (filename, data, "application/json")},
        )
        return _extract_cid(response.json())


class PinataClient(ApiClient):
    name = "pinata"

    def __init__(self, jwt: str, base_url: str = PINATA_API_URL, **kwargs: Any):
        super().__init__(base_url, **kwargs)
        self.headers.pop("Content-Type", None)
        self.headers["Authorization"] = f"Bearer {jwt}"

    async def upload_bytes(self, data: bytes, *, filename: str) -> str:
        response = await self._authed_request(
            "POST",
            "/pinning/pinFileToIPFS",
            files={"file": (filename, data, "application/json")},
            data={"pinataMetadata": json.dumps({"name": filename})},
        )
        return _extract_cid(response.json())
