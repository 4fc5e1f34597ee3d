"""
Module to contain base class for Delivery channels
"""
from abc import ABC, abstractmethod
from pathlib import Path

from core.schemas import Post


class DeliveryChannel(ABC):
    """
    Base interface for all delivery channels.
    """

    name: str

    @abstractmethod
    async def deliver(self, post: Post) -> Path:
        """
        Deliver the post and return where it landed.
        Must raise exceptions on failure (handled upstream).
        """
        raise NotImplementedError
