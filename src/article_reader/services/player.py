"""
Playback state machine for reading an article chunk by chunk.

States: IDLE -> PLAYING <-> PAUSED, and STOPPED after an explicit stop.

At most one playback loop runs at a time. The loop is owned by a
``PlaybackRun`` (task, cancellation event, target backend). Control
operations are serialized by a lock and act as interrupts: set the run's
cancellation flag, stop the backend, wait for the loop to exit, and start a
fresh run when needed. ``_teardown`` is the single path that releases a run.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Sequence, Union

from ..errors import NoArticleLoadedError, ReaderError
from ..schemas.article import Language
from ..schemas.playback import DEFAULT_SPEED, PlaybackState, PlayerStatus, validate_speed
from .tts.backends import PlaybackTarget, Utterance

logger = logging.getLogger(__name__)

TargetProvider = Callable[[], Awaitable[PlaybackTarget]]
StateListener = Callable[[PlaybackState], Union[None, Awaitable[None]]]


@dataclass
class PlaybackRun:
    target: PlaybackTarget
    start_index: int
    cancel: asyncio.Event = field(default_factory=asyncio.Event)
    # Cleared while paused; the loop waits on it before starting a chunk
    resumed: asyncio.Event = field(default_factory=asyncio.Event)
    task: Optional[asyncio.Task] = None

    def __post_init__(self) -> None:
        self.resumed.set()


class ArticlePlayer:
    """Drive a speech backend through an ordered list of chunks."""

    def __init__(
        self,
        target_provider: TargetProvider,
        *,
        stop_timeout: float = 10.0,
    ):
        self._target_provider = target_provider
        self._stop_timeout = stop_timeout
        self._chunks: list[str] = []
        self._language = Language.EN
        self._status = PlayerStatus.IDLE
        self._speed = DEFAULT_SPEED
        self._index = 0
        self._last_error: Optional[str] = None
        self._run: Optional[PlaybackRun] = None
        self._lock = asyncio.Lock()
        self._listeners: list[StateListener] = []

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------
    @property
    def state(self) -> PlaybackState:
        return PlaybackState(
            status=self._status,
            speed=self._speed,
            current_chunk_index=self._index,
            total_chunks=len(self._chunks),
            last_error=self._last_error,
        )

    @property
    def chunks(self) -> list[str]:
        return list(self._chunks)

    @property
    def language(self) -> Language:
        return self._language

    @property
    def is_active(self) -> bool:
        return self._status in (PlayerStatus.PLAYING, PlayerStatus.PAUSED)

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def set_target_provider(self, provider: TargetProvider) -> None:
        """Takes effect on the next started run."""
        self._target_provider = provider

    # ------------------------------------------------------------------
    # Control operations
    # ------------------------------------------------------------------
    async def load(self, chunks: Sequence[str], language: Language) -> None:
        """Replace the chunk sequence; any running loop is stopped first."""
        async with self._lock:
            await self._teardown()
            self._chunks = list(chunks)
            self._language = language
            self._index = 0
            self._status = PlayerStatus.IDLE
            self._last_error = None
        await self._notify()

    async def play(self) -> None:
        """Start reading from the current index. Returns once the loop is started."""
        async with self._lock:
            if not self._chunks:
                raise NoArticleLoadedError()
            if self.is_active:
                return
            await self._start(self._index)
        await self._notify()

    async def pause(self) -> None:
        async with self._lock:
            run = self._run
            if self._status != PlayerStatus.PLAYING or run is None:
                return
            run.resumed.clear()
            await run.target.backend.pause()
            self._status = PlayerStatus.PAUSED
        await self._notify()

    async def resume(self) -> None:
        async with self._lock:
            run = self._run
            if self._status != PlayerStatus.PAUSED or run is None:
                return
            await run.target.backend.resume()
            run.resumed.set()
            self._status = PlayerStatus.PLAYING
        await self._notify()

    async def stop(self) -> None:
        """Halt playback; the current index is kept so play() resumes there."""
        async with self._lock:
            if await self._teardown():
                self._status = PlayerStatus.STOPPED
        await self._notify()

    async def set_speed(self, speed: float) -> None:
        speed = validate_speed(speed)
        async with self._lock:
            self._speed = speed
            run = self._run
            # Rate-aware backends restart the current chunk at the new speed
            if (
                self._status == PlayerStatus.PLAYING
                and run is not None
                and run.target.backend.supports_rate
            ):
                await self._teardown()
                await self._start(self._index)
        await self._notify()

    async def skip_forward(self) -> None:
        await self._skip(1)

    async def skip_back(self) -> None:
        await self._skip(-1)

    async def wait_until_finished(self) -> None:
        """Wait for the current loop, if any, to exit."""
        run = self._run
        if run is not None and run.task is not None:
            await asyncio.wait({run.task})

    async def close(self) -> None:
        async with self._lock:
            await self._teardown()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _skip(self, delta: int) -> None:
        async with self._lock:
            if not self._chunks:
                return
            target = max(0, min(len(self._chunks) - 1, self._index + delta))
            if self.is_active:
                await self._teardown()
                await self._start(target)
            else:
                self._index = target
        await self._notify()

    async def _start(self, index: int) -> None:
        target = await self._target_provider()
        self._index = index
        self._status = PlayerStatus.PLAYING
        self._last_error = None
        run = PlaybackRun(target=target, start_index=index)
        run.task = asyncio.create_task(self._run_loop(run))
        self._run = run
        logger.info(
            "Playback started at chunk %d/%d (%s)",
            index + 1,
            len(self._chunks),
            target.backend.source.value,
        )

    async def _teardown(self) -> bool:
        """Cancel and release the active run. Returns True if one existed."""
        run = self._run
        if run is None:
            return False

        run.cancel.set()
        run.resumed.set()
        await self._stop_backend(run)

        if run.task is not None and not run.task.done():
            done, _ = await asyncio.wait({run.task}, timeout=self._stop_timeout)
            if not done:
                logger.warning("Playback loop did not exit after stop; cancelling")
                run.task.cancel()
                await asyncio.wait({run.task})
                # A request sent after the first stop may still be sounding
                await self._stop_backend(run)

        if self._run is run:
            self._run = None
        return True

    async def _stop_backend(self, run: PlaybackRun) -> None:
        try:
            await run.target.backend.stop()
        except ReaderError as exc:
            logger.warning("Backend stop failed: %s", exc.detail)

    def _finish(self, run: PlaybackRun, *, error: Optional[str] = None) -> bool:
        """Record the end of a run that was not cancelled."""
        if self._run is not run or run.cancel.is_set():
            return False
        self._run = None
        self._status = PlayerStatus.IDLE
        if error is None:
            self._index = 0
        else:
            self._last_error = error
        return True

    async def _run_loop(self, run: PlaybackRun) -> None:
        backend = run.target.backend
        try:
            for index in range(run.start_index, len(self._chunks)):
                if run.cancel.is_set():
                    return
                self._index = index
                await self._notify()
                # Listeners may yield; a pause or stop can land before the chunk starts
                await run.resumed.wait()
                if run.cancel.is_set():
                    return
                await backend.speak(
                    Utterance(
                        text=self._chunks[index],
                        index=index,
                        language=self._language,
                        voice_id=run.target.voice_id,
                        rate=self._speed,
                    )
                )
        except ReaderError as exc:
            logger.warning("Playback failed at chunk %d: %s", self._index + 1, exc.detail)
            if self._finish(run, error=exc.detail):
                await self._notify()
            return
        except Exception as exc:
            logger.exception("Unexpected playback failure at chunk %d", self._index + 1)
            if self._finish(run, error=str(exc) or exc.__class__.__name__):
                await self._notify()
            return

        if self._finish(run):
            logger.info("Playback finished")
            await self._notify()

    async def _notify(self) -> None:
        state = self.state
        for listener in list(self._listeners):
            try:
                result = listener(state)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Playback state listener failed")


__all__ = ["ArticlePlayer", "PlaybackRun", "StateListener", "TargetProvider"]
