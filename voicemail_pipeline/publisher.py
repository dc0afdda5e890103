"""Upload exported results to Cloud Storage."""

import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

from google.api_core import exceptions as api_exceptions
from google.cloud import storage

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".csv": "text/csv",
    ".json": "application/json",
    ".txt": "text/plain",
    ".wav": "audio/wav",
}


def _upload_blob(bucket: Any, local_path: Path, dest_name: str) -> None:
    blob = bucket.blob(dest_name)
    blob.upload_from_filename(str(local_path), content_type=CONTENT_TYPES.get(local_path.suffix.lower()))


def publish_outputs(
    paths: Iterable[Optional[Path]],
    bucket_name: str,
    prefix: str = "",
    *,
    client: Any = None,
) -> List[str]:
    """Upload each existing file in ``paths`` to ``gs://<bucket_name>/<prefix><name>``.

    Upload failures are logged and skipped.  Returns the blob names written.
    """
    client = client or storage.Client()
    bucket = client.bucket(bucket_name)
    uploaded = []
    for path in paths:
        if path is None:
            continue
        path = Path(path)
        dest_name = f"{prefix}{path.name}"
        try:
            _upload_blob(bucket, path, dest_name)
        except (api_exceptions.GoogleAPICallError, OSError) as exc:
            logger.warning("Failed to upload %s to gs://%s/%s: %s", path, bucket_name, dest_name, exc)
            continue
        logger.info("Uploaded %s to gs://%s/%s", path, bucket_name, dest_name)
        uploaded.append(dest_name)
    return uploaded
