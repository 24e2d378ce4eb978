"""Tests for the playback state machine."""

import asyncio
import time

import pytest

from article_reader.errors import NoArticleLoadedError
from article_reader.schemas.article import Language
from article_reader.schemas.playback import PlayerStatus
from article_reader.services.player import ArticlePlayer
from article_reader.services.tts import DeviceSpeechBackend, PlaybackTarget

from conftest import FakeSpeechEngine, settle

CHUNKS = ["Chunk one.", "Chunk two.", "Chunk three."]


def _player(engine: FakeSpeechEngine) -> ArticlePlayer:
    backend = DeviceSpeechBackend(engine)

    async def target() -> PlaybackTarget:
        return PlaybackTarget(backend, "device-en")

    return ArticlePlayer(target, stop_timeout=1.0)


@pytest.mark.anyio
async def test_play_reads_every_chunk_then_rewinds():
    engine = FakeSpeechEngine()
    player = _player(engine)
    await player.load(CHUNKS, Language.EN)

    await player.play()
    await player.wait_until_finished()

    assert [item["text"] for item in engine.spoken] == CHUNKS
    assert player.state.status == PlayerStatus.IDLE
    assert player.state.current_chunk_index == 0


@pytest.mark.anyio
async def test_play_without_chunks_raises():
    player = _player(FakeSpeechEngine())

    with pytest.raises(NoArticleLoadedError):
        await player.play()


@pytest.mark.anyio
async def test_stop_preserves_index_and_play_continues_there():
    engine = FakeSpeechEngine(hold=True)
    player = _player(engine)
    await player.load(CHUNKS, Language.EN)

    await player.play()
    await settle()
    engine.finish_current()
    await settle()
    assert player.state.current_chunk_index == 1

    await player.stop()

    assert player.state.status == PlayerStatus.STOPPED
    assert player.state.current_chunk_index == 1
    assert engine.stop_calls == 1

    await player.play()
    await settle()

    assert engine.spoken[-1]["text"] == "Chunk two."
    assert player.state.status == PlayerStatus.PLAYING
    await player.close()


@pytest.mark.anyio
async def test_play_while_playing_is_a_no_op():
    engine = FakeSpeechEngine(hold=True)
    player = _player(engine)
    await player.load(CHUNKS, Language.EN)

    await player.play()
    await settle()
    await player.play()
    await settle()

    assert len(engine.spoken) == 1
    await player.close()


@pytest.mark.anyio
async def test_pause_and_resume():
    engine = FakeSpeechEngine(hold=True)
    player = _player(engine)
    await player.load(CHUNKS, Language.EN)

    await player.pause()
    assert player.state.status == PlayerStatus.IDLE

    await player.play()
    await settle()
    await player.pause()

    assert player.state.status == PlayerStatus.PAUSED
    assert player.state.is_paused
    assert engine.paused

    await player.pause()
    assert player.state.status == PlayerStatus.PAUSED

    await player.resume()

    assert player.state.status == PlayerStatus.PLAYING
    assert player.state.is_playing
    assert not engine.paused
    assert player.state.current_chunk_index == 0
    await player.close()


@pytest.mark.anyio
async def test_skip_clamps_when_idle():
    player = _player(FakeSpeechEngine())
    await player.load(CHUNKS, Language.EN)

    await player.skip_back()
    assert player.state.current_chunk_index == 0

    for _ in range(5):
        await player.skip_forward()

    assert player.state.current_chunk_index == 2
    assert player.state.status == PlayerStatus.IDLE


@pytest.mark.anyio
async def test_skip_while_playing_restarts_at_new_chunk():
    engine = FakeSpeechEngine(hold=True)
    player = _player(engine)
    await player.load(CHUNKS, Language.EN)

    await player.play()
    await settle()
    await player.skip_forward()
    await settle()

    assert engine.stop_calls == 1
    assert engine.spoken[-1]["text"] == "Chunk two."
    assert player.state.current_chunk_index == 1
    assert player.state.status == PlayerStatus.PLAYING

    await player.skip_back()
    await settle()

    assert engine.spoken[-1]["text"] == "Chunk one."
    await player.close()


@pytest.mark.anyio
async def test_set_speed_restarts_current_chunk():
    engine = FakeSpeechEngine(hold=True)
    player = _player(engine)
    await player.load(CHUNKS, Language.EN)

    await player.play()
    await settle()
    await player.set_speed(1.5)
    await settle()

    assert [item["rate"] for item in engine.spoken] == [1.0, 1.5]
    assert engine.spoken[-1]["text"] == "Chunk one."
    assert player.state.speed == 1.5
    await player.close()


@pytest.mark.anyio
async def test_set_speed_rejects_unknown_values():
    player = _player(FakeSpeechEngine())

    with pytest.raises(ValueError):
        await player.set_speed(3.0)

    await player.set_speed(0.75)
    assert player.state.speed == 0.75


@pytest.mark.anyio
async def test_backend_failure_ends_in_idle_with_error():
    engine = FakeSpeechEngine()
    engine.fail_on = 1
    player = _player(engine)
    await player.load(CHUNKS, Language.EN)

    await player.play()
    await player.wait_until_finished()

    state = player.state
    assert state.status == PlayerStatus.IDLE
    assert state.current_chunk_index == 1
    assert state.last_error == "boom"


@pytest.mark.anyio
async def test_load_stops_running_loop():
    engine = FakeSpeechEngine(hold=True)
    player = _player(engine)
    await player.load(CHUNKS, Language.EN)
    await player.play()
    await settle()

    await player.load(["New one.", "New two."], Language.SV)

    state = player.state
    assert state.status == PlayerStatus.IDLE
    assert state.total_chunks == 2
    assert state.current_chunk_index == 0
    assert player.language == Language.SV


@pytest.mark.anyio
async def test_listeners_see_each_chunk_start():
    engine = FakeSpeechEngine()
    player = _player(engine)
    seen = []

    async def listener(state):
        seen.append((state.status, state.current_chunk_index))

    def broken_listener(state):
        raise RuntimeError("listener bug")

    player.add_listener(listener)
    player.add_listener(broken_listener)
    await player.load(CHUNKS, Language.EN)

    await player.play()
    await player.wait_until_finished()

    assert (PlayerStatus.PLAYING, 1) in seen
    assert (PlayerStatus.PLAYING, 2) in seen
    assert seen[-1] == (PlayerStatus.IDLE, 0)


async def _yielding_listener(state):
    # Mirrors a listener that awaits a network send
    await asyncio.sleep(0)


@pytest.mark.anyio
async def test_stop_during_chunk_start_never_speaks():
    engine = FakeSpeechEngine(hold=True)
    player = _player(engine)
    player.add_listener(_yielding_listener)
    await player.load(CHUNKS, Language.EN)

    await player.play()
    started = time.monotonic()
    await player.stop()

    assert time.monotonic() - started < 0.5
    assert engine.spoken == []
    assert engine.stop_calls == 1
    assert player.state.status == PlayerStatus.STOPPED
    assert player.state.current_chunk_index == 0


@pytest.mark.anyio
async def test_skip_during_chunk_start_speaks_only_new_chunk():
    engine = FakeSpeechEngine(hold=True)
    player = _player(engine)
    player.add_listener(_yielding_listener)
    await player.load(CHUNKS, Language.EN)

    await player.play()
    await player.skip_forward()
    await settle()

    assert [item["text"] for item in engine.spoken] == ["Chunk two."]
    await player.close()


@pytest.mark.anyio
async def test_pause_during_chunk_start_holds_until_resume():
    engine = FakeSpeechEngine(hold=True)
    player = _player(engine)
    player.add_listener(_yielding_listener)
    await player.load(CHUNKS, Language.EN)

    await player.play()
    await player.pause()
    await settle()

    assert player.state.status == PlayerStatus.PAUSED
    assert engine.spoken == []

    await player.resume()
    await settle()

    assert [item["text"] for item in engine.spoken] == ["Chunk one."]
    await player.close()
