# file_search_qa/ui/api_client.py

from typing import Dict, List, Optional

import requests


DEFAULT_API_BASE = "http://127.0.0.1:8000"

# Upload + import both poll server-side; import alone can take 150s
REQUEST_TIMEOUT_SECONDS = 300


class ApiError(Exception):
    """Non-2xx answer from the service, or the service was unreachable."""

    def __init__(self, status_code: int, detail: str, error_code: Optional[str] = None):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail
        self.error_code = error_code

    @property
    def store_not_empty(self) -> bool:
        return self.error_code == "STORE_NOT_EMPTY"


class ApiClient:
    """Thin requests wrapper used by the Streamlit UI."""

    def __init__(self, base_url: str = DEFAULT_API_BASE, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> Dict:

        try:
            response = self.session.request(
                method,
                f"{self.base_url}{path}",
                timeout=REQUEST_TIMEOUT_SECONDS,
                **kwargs,
            )
        except requests.RequestException as e:
            raise ApiError(0, f"Cannot connect to API: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 400:

            detail = data.get("detail") if isinstance(data, dict) else None

            if isinstance(detail, list):
                detail = "; ".join(str(d.get("msg", d)) for d in detail)

            raise ApiError(
                response.status_code,
                detail or f"HTTP {response.status_code}",
                data.get("error_code") if isinstance(data, dict) else None,
            )

        return data

    # ---------- stores ----------

    def list_stores(self) -> List[Dict]:
        return self._request("GET", "/file-search-stores")["stores"]

    def create_store(self, display_name: str) -> Dict:
        return self._request(
            "POST", "/file-search-stores", json={"display_name": display_name}
        )["store"]

    def delete_store(self, name: str, force: bool = False) -> None:
        params = {"name": name}
        if force:
            params["force"] = "true"
        self._request("DELETE", "/file-search-stores", params=params)

    # ---------- files ----------

    def list_files(self) -> List[Dict]:
        return self._request("GET", "/files")["files"]

    def delete_file(self, name: str) -> None:
        self._request("DELETE", "/files", params={"name": name})

    def upload(self, filename: str, content: bytes, mime_type: Optional[str]) -> Dict:
        files = {"file": (filename, content, mime_type or "application/octet-stream")}
        return self._request("POST", "/upload", files=files)["file"]

    def import_file(self, store_name: str, file_uri: str) -> Dict:
        return self._request(
            "POST",
            f"/file-search-stores/{store_name}/import",
            json={"file_uri": file_uri},
        )

    def upload_to_store(self, store_name: str, filename: str, content: bytes, mime_type: Optional[str]) -> Dict:
        """Upload, then import into the store. Returns the import result."""
        uploaded = self.upload(filename, content, mime_type)
        return self.import_file(store_name, uploaded["uri"] or uploaded["name"])

    # ---------- query ----------

    def query(self, query: str, store_names: List[str], create_slides: bool = False) -> Dict:
        return self._request(
            "POST",
            "/query",
            json={
                "query": query,
                "file_search_store_names": store_names,
                "create_slides": create_slides,
            },
        )
