from typing import List, Optional, Sequence

from pydantic import ValidationError

from core.errors import PostValidationError
from core.schemas import Post, Topic
from services.scheduler import Window


def assemble_post(
    *,
    title: str,
    window: Window,
    topics: List[Topic],
    allowed_types: Optional[Sequence[str]] = None,
) -> Post:
    """
    Combine the generated headline, the window's mark and the ranked topics
    into a validated Post.

    Raises:
        PostValidationError: If any field violates the post schema.
    """
    if allowed_types is not None and window.post_type not in allowed_types:
        raise PostValidationError(
            f"Post type {window.post_type!r} is not one of {list(allowed_types)}"
        )

    try:
        return Post.model_validate({
            "title": title.strip(),
            "date": window.mark,
            "type": window.post_type,
            "topics": [topic.model_dump(by_alias=True) for topic in topics],
        })
    except ValidationError as e:
        raise PostValidationError(f"Assembled post is invalid: {e}") from e
