import re
import uuid
from pathlib import Path

from app.errors import UpstreamServiceError

_SAFE_SUFFIX = re.compile(r"^\.[A-Za-z0-9]{1,10}$")

class LocalBlobStore:
    """Filesystem blob store; files are served back under /files/{key}."""

    def __init__(self, root: Path, public_base_url: str):
        self.root = root
        self.public_base_url = public_base_url.rstrip("/")

    def key_for(self, filename: str) -> str:
        suffix = Path(filename).suffix.lower()
        if not _SAFE_SUFFIX.match(suffix):
            suffix = ""
        return f"{uuid.uuid4().hex}{suffix}"

    def upload(self, data: bytes, filename: str, mime_type: str) -> str:
        key = self.key_for(filename)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            (self.root / key).write_bytes(data)
        except OSError as e:
            raise UpstreamServiceError(f"upload of {filename!r} failed: {e.__class__.__name__}") from e
        return f"{self.public_base_url}/files/{key}"
