"""
PostArchive - Reads previously persisted posts.
Used to feed recent headlines back to the title generator so it does not repeat itself.
"""
import logging
from pathlib import Path
from typing import List

from pydantic import ValidationError

from core.schemas import Post

logger = logging.getLogger(__name__)


class PostArchive:
    """
    Read-only view over the posts directory.
    """

    def __init__(self, posts_dir: str):
        self.posts_dir = Path(posts_dir)

    def load_posts(self) -> List[Post]:
        """All readable posts, newest first. Invalid files are skipped."""
        if not self.posts_dir.is_dir():
            return []

        posts = []
        for path in sorted(self.posts_dir.glob("*.json")):
            if path.name.startswith(("_", ".")):
                continue
            try:
                posts.append(Post.model_validate_json(path.read_text(encoding="utf-8")))
            except (OSError, ValidationError) as e:
                logger.warning(f"Skipping unreadable post {path.name}: {e}")

        return sorted(posts, key=lambda p: p.date, reverse=True)

    def recent_titles(self, limit: int = 10) -> List[str]:
        if limit <= 0:
            return []
        return [post.title for post in self.load_posts()[:limit]]
