import logging
from typing import Final

import pytest

from convoscript.errors import StepLimitExceededError
from convoscript.library import ScriptLibrary
from convoscript.runtime import ScriptRuntime
from convoscript.serialization import SerializedFrame
from convoscript.stores import InMemoryContinuationStore
from convoscript.types.frame import Frame
from convoscript.types.instructions import ContentInstruction
from convoscript.types.instructions import JumpIfInstruction
from convoscript.types.instructions import PromptInstruction
from convoscript.types.instructions import ReturnInstruction
from convoscript.types.limits import ExecutionLimits
from convoscript.types.results import Finished
from convoscript.types.results import Suspended
from convoscript.types.script import Script
from test.mock_store import MockStore
from test.utils import CHANNEL
from test.utils import MockChannel
from test.utils import make_scope


def _guessing_game() -> Script:
    return Script(
        name="GuessingGame",
        instructions=[
            ContentInstruction(get_content=lambda ctx: f"Guess my number, {ctx.vars['player']}!"),
            PromptInstruction(label="guess", set_vars=lambda ctx, input: {**ctx.vars, "guess": input}),
            JumpIfInstruction(condition=lambda ctx: ctx.vars["guess"] == 7, offset=3),
            ContentInstruction(get_content=lambda _: "Nope, try again."),
            PromptInstruction(label="retry", set_vars=lambda ctx, input: {**ctx.vars, "guess": input}),
            ReturnInstruction(get_value=lambda ctx: ctx.vars["guess"] == 7),
        ],
        checkpoints={"guess": 1, "retry": 4},
    )


@pytest.mark.asyncio
async def test_start_persists_the_suspended_stack() -> None:
    script: Final = _guessing_game()
    store: Final = MockStore()
    runtime: Final = ScriptRuntime(ScriptLibrary(), store)

    result: Final = await runtime.start(make_scope(), CHANNEL, script, {"player": "Jo"})

    assert result == Suspended(
        stack=[Frame(script=script, vars={"player": "Jo"}, stop_at="guess")],
        contents=["Guess my number, Jo!"],
    )
    assert isinstance(result, Suspended)
    assert store.num_saves == 1
    assert store.load(CHANNEL.uid) == [SerializedFrame(script_name="GuessingGame", vars={"player": "Jo"}, stop_at="guess")]
    assert runtime.is_running(CHANNEL)
    assert runtime.get_stack(CHANNEL) == result.stack


@pytest.mark.asyncio
async def test_resume_until_the_dialogue_finishes() -> None:
    store: Final = MockStore()
    runtime: Final = ScriptRuntime(ScriptLibrary(), store)
    await runtime.start(make_scope(), CHANNEL, _guessing_game(), {"player": "Jo"})

    retry: Final = await runtime.resume(make_scope(), CHANNEL, 3)
    assert isinstance(retry, Suspended)
    assert retry.contents == ["Nope, try again."]
    assert retry.stack[0].stop_at == "retry"

    finished: Final = await runtime.resume(make_scope(), CHANNEL, 7)
    assert finished == Finished(returned_value=True, contents=[])
    assert not runtime.is_running(CHANNEL)
    assert runtime.get_stack(CHANNEL) is None
    assert store.num_saves == 2


@pytest.mark.asyncio
async def test_resume_without_a_running_dialogue() -> None:
    store: Final = MockStore()
    runtime: Final = ScriptRuntime(ScriptLibrary(), store)

    assert await runtime.resume(make_scope(), CHANNEL, "hello?") is None
    assert store.num_saves == 0


@pytest.mark.asyncio
async def test_dialogues_of_different_channels_are_independent() -> None:
    other_channel: Final = MockChannel(platform="test", uid="_OTHER_CHANNEL_")
    runtime: Final = ScriptRuntime(ScriptLibrary(), InMemoryContinuationStore())
    script: Final = _guessing_game()
    await runtime.start(make_scope(), CHANNEL, script, {"player": "Jo"})
    await runtime.start(make_scope(), other_channel, script, {"player": "Sam"})

    assert await runtime.resume(make_scope(), CHANNEL, 7) == Finished(returned_value=True, contents=[])

    assert not runtime.is_running(CHANNEL)
    assert runtime.get_stack(other_channel) == [Frame(script=script, vars={"player": "Sam"}, stop_at="guess")]


@pytest.mark.asyncio
async def test_start_replaces_a_running_dialogue(caplog: pytest.LogCaptureFixture) -> None:
    script: Final = _guessing_game()
    runtime: Final = ScriptRuntime(ScriptLibrary(), InMemoryContinuationStore())
    await runtime.start(make_scope(), CHANNEL, script, {"player": "Jo"})
    await runtime.resume(make_scope(), CHANNEL, 1)

    with caplog.at_level(logging.WARNING, logger="convoscript.runtime"):
        await runtime.start(make_scope(), CHANNEL, script, {"player": "Kim"})

    assert "Replacing the running dialogue" in caplog.text
    assert runtime.get_stack(CHANNEL) == [Frame(script=script, vars={"player": "Kim"}, stop_at="guess")]


@pytest.mark.asyncio
async def test_exit_discards_the_running_dialogue() -> None:
    store: Final = MockStore()
    runtime: Final = ScriptRuntime(ScriptLibrary(), store)
    await runtime.start(make_scope(), CHANNEL, _guessing_game(), {"player": "Jo"})

    assert runtime.exit(CHANNEL)
    assert not runtime.exit(CHANNEL)
    assert not runtime.is_running(CHANNEL)
    assert await runtime.resume(make_scope(), CHANNEL, 7) is None


@pytest.mark.asyncio
async def test_stored_stacks_are_resolved_through_the_library() -> None:
    script: Final = _guessing_game()
    store: Final = MockStore(
        {CHANNEL.uid: [SerializedFrame(script_name="GuessingGame", vars={"player": "Lee"}, stop_at="retry")]}
    )
    runtime: Final = ScriptRuntime(ScriptLibrary([script]), store)

    assert await runtime.resume(make_scope(), CHANNEL, 2) == Finished(returned_value=False, contents=[])
    assert store.num_deletes == 1


@pytest.mark.asyncio
async def test_runtime_applies_its_limits() -> None:
    script: Final = Script(
        name="Chatty",
        instructions=[ContentInstruction(get_content=lambda _: "bla") for _ in range(5)],
    )
    runtime: Final = ScriptRuntime(ScriptLibrary(), InMemoryContinuationStore(), limits=ExecutionLimits(max_steps=3))

    with pytest.raises(StepLimitExceededError, match="more than 3 instructions"):
        await runtime.start(make_scope(), CHANNEL, script)


def test_in_memory_store() -> None:
    store: Final = InMemoryContinuationStore()
    frames: Final = [SerializedFrame(script_name="A", vars={"x": 1}, stop_at="ask")]

    assert store.load("channel") is None
    store.save("channel", frames)
    assert store.load("channel") == frames
    assert store.delete("channel")
    assert not store.delete("channel")
    assert store.load("channel") is None


@pytest.mark.asyncio
async def test_persisted_stack_does_not_share_vars_with_callers() -> None:
    script: Final = Script(name="Basket", instructions=[PromptInstruction(label="ask")], checkpoints={"ask": 0})
    store: Final = InMemoryContinuationStore()
    runtime: Final = ScriptRuntime(ScriptLibrary(), store)

    result: Final = await runtime.start(make_scope(), CHANNEL, script, {"items": []})
    assert isinstance(result, Suspended)
    result.stack[0].vars["items"].append("changed by caller")
    loaded: Final = store.load(CHANNEL.uid)
    assert loaded is not None
    loaded[0].vars["items"].append("changed after loading")

    assert store.load(CHANNEL.uid) == [SerializedFrame(script_name="Basket", vars={"items": []}, stop_at="ask")]
