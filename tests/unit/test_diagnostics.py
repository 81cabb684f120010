"""
Tests for the DiagnosticChannel.
"""

import pytest

from token_requests.state.diagnostics import (
    Diagnostic,
    DiagnosticChannel,
    DiagnosticCode,
    Severity,
)


class TestDiagnosticChannel:

    @pytest.mark.asyncio
    async def test_sync_and_async_subscribers(self):
        channel = DiagnosticChannel()
        received = []

        async def on_diagnostic(diagnostic):
            received.append(("async", diagnostic.code))

        channel.subscribe(lambda d: received.append(("sync", d.code)))
        channel.subscribe(on_diagnostic)

        await channel.recoverable(DiagnosticCode.UNKNOWN_REQUEST, "missing", request_id="7")

        assert received == [
            ("sync", DiagnosticCode.UNKNOWN_REQUEST),
            ("async", DiagnosticCode.UNKNOWN_REQUEST),
        ]

    @pytest.mark.asyncio
    async def test_failing_subscriber_is_contained(self):
        channel = DiagnosticChannel()
        received = []

        def broken(_):
            raise RuntimeError("sink down")

        channel.subscribe(broken)
        channel.subscribe(received.append)

        diagnostic = await channel.fatal(DiagnosticCode.BOOTSTRAP_FAILED, "no managers")

        assert diagnostic.severity == Severity.FATAL_TO_BOOTSTRAP
        assert received == [diagnostic]

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        channel = DiagnosticChannel()
        received = []
        channel.subscribe(received.append)
        channel.unsubscribe(received.append)

        await channel.recoverable(DiagnosticCode.DROPPED_EVENT, "dropped")

        assert received == []
        assert len(channel.recent) == 1

    @pytest.mark.asyncio
    async def test_history_is_bounded(self):
        channel = DiagnosticChannel(history_size=2)
        for i in range(3):
            await channel.recoverable(DiagnosticCode.UNKNOWN_REQUEST, "missing", request_id=str(i))

        assert [d.request_id for d in channel.recent] == ["1", "2"]

    def test_diagnostic_serializes_enum_values(self):
        diagnostic = Diagnostic(code=DiagnosticCode.REQUEST_ALREADY_TERMINAL, message="terminal")
        data = diagnostic.model_dump(mode="json")
        assert data["code"] == "request-already-terminal"
        assert data["severity"] == "recoverable"
