"""
File delivery channel: one JSON file per post, keyed by date and type
"""
import logging
import os
import tempfile
from pathlib import Path

from core.schemas import Post
from delivery.base import DeliveryChannel
from services.logging import SUCCESS

logger = logging.getLogger(__name__)


class FileDelivery(DeliveryChannel):
    name = "file"

    def __init__(self, output_dir: str = "src/content/posts"):
        self.output_dir = Path(output_dir)

    def path_for(self, post: Post) -> Path:
        return self.output_dir / f"{post.slug}.json"

    async def deliver(self, post: Post) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        json_path = self.path_for(post)

        # Write beside the target and rename so a failed run never leaves a
        # truncated post for the site build to pick up.
        fd, tmp_name = tempfile.mkstemp(dir=self.output_dir, prefix=f".{post.slug}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(post.to_json())
            os.replace(tmp_name, json_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.log(SUCCESS, f"Digest complete: {json_path.name}")
        return json_path
