"""One generate operation with its own cancellation scope."""

from __future__ import annotations

from typing import Callable, Optional
import logging

from promptplayground.cancellation import CancellationToken, OperationCancelledError
from promptplayground.generation.loop import GenerationLoop, LoopState
from promptplayground.generation.outcome import Cancelled, Completed, Failed, RunOutcome
from promptplayground.llm.base import CompletionProvider
from promptplayground.llm.config import ProviderConfiguration
from promptplayground.llm.errors import LLMError
from promptplayground.llm.factory import select_provider
from promptplayground.template.prompt_config import PromptConfig, PromptConfigError
from promptplayground.template.resolver import (
    VariableCollector,
    VariableResolutionError,
    VariablesAbandonedError,
    resolve_variables,
)
from promptplayground.template.variables import extract_variables


ProviderFactory = Callable[[ProviderConfiguration], CompletionProvider]


class SessionSpentError(RuntimeError):
    """Raised when a session is asked to generate a second time."""


class RunSession:
    """Owns the lifecycle of exactly one run.

    ``generate`` runs extraction, resolution, provider selection and the
    generation loop in that order and returns one terminal outcome.
    ``cancel`` may be called at any time from the event loop thread; it is
    irreversible and observed before the next completion call.
    """

    def __init__(
        self,
        *,
        provider_factory: Optional[ProviderFactory] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._provider_factory = provider_factory or select_provider
        self._logger = logger or logging.getLogger("promptplayground.generation.session")
        self._cancellation = CancellationToken()
        self._started = False
        self._outcome: Optional[RunOutcome] = None

    @property
    def cancellation(self) -> CancellationToken:
        return self._cancellation

    @property
    def outcome(self) -> Optional[RunOutcome]:
        return self._outcome

    def cancel(self) -> None:
        self._cancellation.cancel()

    async def generate(
        self,
        template: str,
        config: ProviderConfiguration,
        collector: VariableCollector,
        prompt_config: Optional[PromptConfig] = None,
    ) -> RunOutcome:
        if self._started:
            raise SessionSpentError("RunSession already produced an outcome; create a new session.")
        self._started = True

        names = extract_variables(template)
        self._logger.debug("run_started variables=%s", len(names))

        try:
            bindings = await self._cancellation.guard(resolve_variables(names, collector))
            params = config.generation
            if prompt_config is not None:
                params = prompt_config.apply(params)
            provider = self._provider_factory(config)
        except OperationCancelledError:
            return self._settle(Cancelled(results=()))
        except VariablesAbandonedError as exc:
            self._logger.info("run_abandoned reason=variables_dismissed")
            return self._settle(Failed(error=exc))
        except (VariableResolutionError, LLMError, PromptConfigError) as exc:
            self._logger.warning("run_setup_failed error_type=%s", exc.__class__.__name__)
            return self._settle(Failed(error=exc))
        except Exception as exc:
            self._logger.exception("run_setup_failed error_type=%s", exc.__class__.__name__)
            return self._settle(Failed(error=exc))

        loop = GenerationLoop(provider, logger=self._logger)
        result = await loop.run(
            template,
            bindings,
            params.max_count,
            self._cancellation,
            params=params,
        )

        if result.state is LoopState.COMPLETED:
            return self._settle(Completed(results=result.results))
        if result.state is LoopState.CANCELLED:
            return self._settle(Cancelled(results=result.results))
        return self._settle(Failed(error=result.error, results=result.results))

    def _settle(self, outcome: RunOutcome) -> RunOutcome:
        self._outcome = outcome
        self._logger.info(
            "run_finished status=%s results=%s",
            outcome.status,
            len(outcome.results),
        )
        return outcome
