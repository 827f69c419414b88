# -*- coding: utf-8 -*-
"""Async queue abstraction and implementations."""

from memecoin_tracker.queue.base import IAsyncQueue
from memecoin_tracker.queue.in_memory_queue import InMemoryQueue
from memecoin_tracker.queue.messages import QueueMessage

__all__ = ["IAsyncQueue", "InMemoryQueue", "QueueMessage"]
