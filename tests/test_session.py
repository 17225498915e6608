"""Tests for client.session — frame accumulation, final swap, reset."""

from __future__ import annotations

import asyncio

import pytest

from client.session import DOWNLOAD_FILENAME, GenerationSession, SessionState
from models.generation import DeltaEvent, GenerationRequest, Stage
from services.relay import FrameEncoder, decode_frame, relay_frames
from tests.fakes import SAMPLE_COMPONENT, collect

enc = FrameEncoder()


def _feed(session: GenerationSession, *events: DeltaEvent, done: bool = True) -> None:
    for event in events:
        session.feed_line(enc.frame(event).strip())
    if done:
        assert session.feed_line(enc.done().strip()) is True


class TestAccumulation:
    def test_code_events_build_live_buffer(self):
        session = GenerationSession()
        session.begin("button")
        _feed(session, DeltaEvent.code("import "), DeltaEvent.code("React"), done=False)
        assert session.code == "import React"
        assert session.is_generating

    def test_complete_replaces_buffer_wholesale(self):
        session = GenerationSession()
        session.begin("button")
        _feed(
            session,
            DeltaEvent.status("Generating your component..."),
            DeltaEvent.code("import React ```"),
            DeltaEvent.complete("import React from 'react';"),
        )
        assert session.code == "import React from 'react';"
        assert session.final_code == session.code
        assert session.state is SessionState.COMPLETE
        assert session.finished

    def test_status_does_not_touch_buffer(self):
        session = GenerationSession()
        session.begin("button")
        _feed(session, DeltaEvent.status("Generating your component..."), done=False)
        assert session.status == "Generating your component..."
        assert session.code == ""

    def test_error_keeps_partial_buffer(self):
        session = GenerationSession()
        session.begin("button")
        _feed(session, DeltaEvent.code("import React"), DeltaEvent.error("Upstream failed"))
        assert session.code == "import React"
        assert session.error == "Upstream failed"
        assert session.state is SessionState.FAILED
        assert session.final_code is None

    def test_events_after_terminal_are_ignored(self):
        session = GenerationSession()
        session.begin("button")
        session.apply(DeltaEvent.complete("final"))
        session.apply(DeltaEvent.code("late"))
        session.apply(DeltaEvent.error("late error"))
        assert session.code == "final"
        assert session.error is None

    def test_feed_line_ignores_noise(self):
        session = GenerationSession()
        session.begin("button")
        assert session.feed_line("") is False
        assert session.feed_line(": ping") is False
        assert session.code == ""


class TestLifecycle:
    def test_begin_starts_fresh_accumulation(self):
        session = GenerationSession()
        session.begin("first")
        session.apply(DeltaEvent.code("partial"))
        session.apply(DeltaEvent.error("boom"))

        request = session.begin("second", follow_up=False)
        assert session.code == ""
        assert session.error is None
        assert request.prior_code is None
        assert session.generation_id == 2

    def test_follow_up_sends_current_code(self):
        session = GenerationSession()
        session.begin("card")
        session.apply(DeltaEvent.complete(SAMPLE_COMPONENT))

        request = session.begin("make it blue")
        assert request == GenerationRequest(prompt="make it blue", prior_code=SAMPLE_COMPONENT)
        assert session.code == ""

    def test_first_request_is_never_follow_up(self):
        request = GenerationSession().begin("card")
        assert request.prior_code is None

    def test_thread_records_prompts_and_results(self):
        session = GenerationSession()
        session.begin("card")
        session.apply(DeltaEvent.complete(SAMPLE_COMPONENT))
        assert session.messages == [
            {"role": "user", "content": "card"},
            {"role": "assistant", "content": SAMPLE_COMPONENT},
        ]

    def test_cancel_keeps_buffer_and_drops_later_code(self):
        session = GenerationSession()
        session.begin("card")
        session.apply(DeltaEvent.code("import React"))
        session.cancel()
        session.apply(DeltaEvent.code(" more"))
        session.apply(DeltaEvent.error("Generation cancelled"))

        assert session.code == "import React"
        assert session.state is SessionState.CANCELLED
        assert session.error == "Generation cancelled"

    def test_begin_cancels_in_flight_generation(self):
        session = GenerationSession()
        session.begin("first")
        first_cancel = session.cancel_event
        session.begin("second")
        assert first_cancel.is_set()
        assert not session.cancel_requested

    def test_reset_clears_everything(self):
        session = GenerationSession()
        session.begin("card")
        session.apply(DeltaEvent.code("partial"))
        session.reset()

        assert session.code == ""
        assert session.messages == []
        assert session.error is None
        assert session.state is SessionState.IDLE
        assert session.begin("again").prior_code is None


class TestSave:
    def test_save_writes_final_code(self, tmp_path):
        session = GenerationSession()
        session.begin("card")
        session.apply(DeltaEvent.complete(SAMPLE_COMPONENT))

        target = session.save(tmp_path / "Card.tsx")
        assert target.read_text(encoding="utf-8") == SAMPLE_COMPONENT

    def test_save_into_directory_uses_download_name(self, tmp_path):
        session = GenerationSession()
        session.begin("card")
        session.apply(DeltaEvent.complete(SAMPLE_COMPONENT))

        target = session.save(tmp_path)
        assert target == tmp_path / DOWNLOAD_FILENAME
        assert target.name == "generated-component.tsx"
        assert target.read_text(encoding="utf-8") == SAMPLE_COMPONENT

    def test_save_without_code_raises(self, tmp_path):
        with pytest.raises(ValueError):
            GenerationSession().save(tmp_path / "x.tsx")


# ── Full pipeline replay ──────────────────────────────────────


@pytest.mark.asyncio
async def test_replay_yields_full_code_not_raw_concatenation(make_generator):
    chunks = [
        "Sure! Here's the button:\n```tsx\n",
        "import React from 'react';\n\n",
        "function Btn() {\n",
        "  return <button style={{ padding: '1rem' }}>Go</button>;\n",
        "}\n```",
    ]
    generator, _ = make_generator(chunks)
    cancel = asyncio.Event()
    frames = await collect(
        relay_frames(generator.generate(GenerationRequest(prompt="button"), cancel=cancel), cancel=cancel)
    )

    session = GenerationSession()
    session.begin("button")
    for frame in frames:
        session.feed_line(frame.strip())

    events = [decode_frame(f.strip()) for f in frames[:-1]]
    raw_code = "".join(e.content for e in events if e.stage is Stage.CODE)
    [complete] = [e for e in events if e.stage is Stage.COMPLETE]

    assert session.code == complete.full_code
    assert session.code != raw_code
    assert session.state is SessionState.COMPLETE
    assert session.finished
    assert session.code.endswith("export default Btn;")
    assert "```" not in session.code


@pytest.mark.asyncio
async def test_follow_up_cancelled_mid_stream_keeps_partial(make_generator):
    session = GenerationSession()
    session.begin("card")
    session.apply(DeltaEvent.complete(SAMPLE_COMPONENT))

    request = session.begin("make it blue")
    assert request.prior_code == SAMPLE_COMPONENT
    cancel = session.cancel_event

    def cancel_after_first(index: int) -> None:
        if index == 0:
            session.cancel()

    generator, llm = make_generator(
        [
            "import React from 'react';\n",
            "export default function Counter() {\n",
            "  return <div style={{ color: '#3b82f6' }} />;\n",
            "}\n",
        ],
        on_chunk=cancel_after_first,
    )

    frames = []
    async for frame in relay_frames(generator.generate(request, cancel=cancel), cancel=cancel):
        frames.append(frame)
        session.feed_line(frame.strip())

    assert frames[-1] == FrameEncoder().done()
    assert session.finished
    assert session.code == "import React from 'react';\n"
    assert session.error == "Generation cancelled"
    assert session.state is SessionState.CANCELLED
    assert SAMPLE_COMPONENT in llm.calls[0][1]["content"]
