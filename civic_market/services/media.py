"""
Keeps a listing's media_url and the stored object in step.

Rules:
  - a stored object is deleted only after the record change that stops
    referencing it has committed (PostCommitQueue.commit);
  - an upload stored for a request that then fails is discarded right away,
    since nothing ever referenced it;
  - deletion is best effort: failures are logged and never reach the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Union

from civic_market.repositories.base import SqlRepository
from civic_market.services.storage import LocalMediaStore

log = logging.getLogger(__name__)

# (fn, *args) -> None; hands a cleanup job to whatever runs it
Dispatch = Callable[..., Any]


def run_inline(fn: Callable[..., Any], *args: Any) -> None:
    fn(*args)


@dataclass(frozen=True)
class KeepMedia:
    pass


@dataclass(frozen=True)
class ReplaceMedia:
    url: str


@dataclass(frozen=True)
class RemoveMedia:
    pass


MediaChange = Union[KeepMedia, ReplaceMedia, RemoveMedia]


def decide_media_change(*, upload_url: str | None, remove_requested: bool) -> MediaChange:
    # a new upload wins over an explicit removal request
    if upload_url:
        return ReplaceMedia(url=upload_url)
    if remove_requested:
        return RemoveMedia()
    return KeepMedia()


class PostCommitQueue:
    """Cleanup jobs that may only run once the current transaction has committed."""

    def __init__(self, dispatch: Dispatch):
        self._dispatch = dispatch
        self._jobs: list[tuple[Callable[..., Any], tuple[Any, ...]]] = []

    def add(self, fn: Callable[..., Any], *args: Any) -> None:
        self._jobs.append((fn, args))

    def __len__(self) -> int:
        return len(self._jobs)

    async def commit(self, repo: SqlRepository) -> None:
        """
        Commit, then hand queued jobs to the dispatcher.
        If the commit raises, the jobs are dropped.
        """
        jobs, self._jobs = self._jobs, []
        await repo.commit()
        for fn, args in jobs:
            self._dispatch(fn, *args)


class MediaLifecycleManager:
    def __init__(self, store: LocalMediaStore, dispatch: Dispatch = run_inline):
        self.store = store
        self.dispatch = dispatch

    def post_commit_queue(self) -> PostCommitQueue:
        return PostCommitQueue(self.dispatch)

    def delete_quietly(self, url: str) -> None:
        try:
            if self.store.delete(url):
                log.info("media object removed: %s", url)
        except OSError:
            log.exception("media cleanup failed for %s", url)

    def discard_upload(self, url: str | None) -> None:
        """
        Failure path: drop an upload that never got committed. Runs inline;
        a failed request has no post-response hook to hand it to.
        """
        if url:
            self.delete_quietly(url)

    def schedule_delete(self, queue: PostCommitQueue, url: str | None) -> None:
        if url:
            queue.add(self.delete_quietly, url)

    def apply(self, change: MediaChange, current_url: str | None, queue: PostCommitQueue) -> dict[str, str | None]:
        """
        Column changes for the update, scheduling removal of the object the
        listing will stop pointing at. KeepMedia returns no column at all so
        the stored value is never rewritten.
        """
        if isinstance(change, ReplaceMedia):
            if current_url and current_url != change.url:
                self.schedule_delete(queue, current_url)
            return {"media_url": change.url}
        if isinstance(change, RemoveMedia):
            self.schedule_delete(queue, current_url)
            return {"media_url": None}
        return {}
