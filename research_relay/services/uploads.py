import contextlib
import logging
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from starlette.datastructures import UploadFile

from research_relay.errors import StagingError

logger = logging.getLogger("research_relay.uploads")

_DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class StagedUpload:
    original_name: str
    storage_name: str
    path: Path
    content_type: str

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


def storage_name_for(original_name: str) -> str:
    # epoch millis plus a random tail, unique within the same millisecond
    suffix = Path(original_name).suffix
    return f"{int(time.time() * 1000)}-{uuid4().hex[:8]}{suffix}"


@contextlib.asynccontextmanager
async def stage_upload(upload_dir: Path, upload: UploadFile) -> AsyncIterator[StagedUpload]:
    original_name = upload.filename or ""
    storage_name = storage_name_for(original_name)
    destination = (upload_dir / storage_name).resolve()

    try:
        try:
            content = await upload.read()
            destination.write_bytes(content)
        except OSError as exc:
            raise StagingError(f"could not store upload: {exc}") from exc

        yield StagedUpload(
            original_name=original_name,
            storage_name=storage_name,
            path=destination,
            content_type=upload.content_type or _DEFAULT_CONTENT_TYPE,
        )
    finally:
        discard(destination)


def discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("transient upload cleanup failed: %s (%s)", path, exc)
