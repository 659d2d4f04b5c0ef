"""Console host for a single prompt run."""

from __future__ import annotations

from typing import Callable, Optional
import asyncio
import logging
import signal

from promptplayground.config.settings import PlaygroundSettings
from promptplayground.generation.outcome import RunOutcome
from promptplayground.generation.session import RunSession
from promptplayground.template.prompt_config import PromptConfig
from promptplayground.template.resolver import VariableCollector


class PlaygroundApp:
    """Runs one session with SIGINT/SIGTERM wired to cancellation."""

    def __init__(
        self,
        settings: PlaygroundSettings,
        session_factory: Callable[[], RunSession] = RunSession,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.settings = settings
        self.logger = logger or logging.getLogger("promptplayground.runtime")
        self._session_factory = session_factory

    async def run(
        self,
        template: str,
        collector: VariableCollector,
        *,
        prompt_config: Optional[PromptConfig] = None,
        timeout_seconds: Optional[float] = None,
    ) -> RunOutcome:
        session = self._session_factory()
        added_signals = self._install_signal_handlers(session)
        if timeout_seconds is not None:
            session.cancellation.cancel_after(timeout_seconds)

        self.logger.info(
            "Run started (backend=%s, max_count=%s).",
            self.settings.backend.kind if self.settings.backend is not None else None,
            self.settings.generation.max_count,
        )
        try:
            return await session.generate(
                template,
                self.settings.provider_configuration(),
                collector,
                prompt_config=prompt_config,
            )
        finally:
            self._remove_signal_handlers(added_signals)

    def _install_signal_handlers(self, session: RunSession) -> list[signal.Signals]:
        loop = asyncio.get_running_loop()
        added = []

        def _request_cancel() -> None:
            self.logger.info("Cancellation requested.")
            session.cancel()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, _request_cancel)
                added.append(sig)
            except (NotImplementedError, RuntimeError):
                # Signal handlers may be unsupported on some environments.
                break

        return added

    @staticmethod
    def _remove_signal_handlers(signals_to_remove: list[signal.Signals]) -> None:
        loop = asyncio.get_running_loop()

        for sig in signals_to_remove:
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                break


def configure_logging(log_level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
