"""Sequential stage pipeline with an append-only result context"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..api.exceptions import ContextConflictError, MissingContextKeyError, PipelineError
from ..models.result import PipelineStatus, StageStatus

logger = logging.getLogger(__name__)


class PipelineContext(Mapping[str, Any]):
    """Immutable, append-only mapping threaded through pipeline stages"""

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self._data: Dict[str, Any] = dict(data or {})

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"PipelineContext({self._data!r})"

    def require(self, stage: str, key: str) -> Any:
        """Get a value a stage depends on

        Raises:
            MissingContextKeyError: If no earlier stage produced the key
        """
        if key not in self._data:
            raise MissingContextKeyError(stage, key)
        return self._data[key]

    def merge(self, updates: Optional[Mapping[str, Any]], stage: str = "pipeline") -> 'PipelineContext':
        """Return a new context with updates added

        Raises:
            ContextConflictError: If an existing key would get a new value
        """
        if not updates:
            return self

        for key, value in updates.items():
            if key in self._data and self._data[key] != value:
                raise ContextConflictError(stage, key)

        merged = dict(self._data)
        merged.update(updates)
        return PipelineContext(merged)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)


class Stage(ABC):
    """One named step of a pipeline

    Subclasses declare the context keys they read in ``requires`` and the
    keys they add in ``provides``, and implement ``execute``.
    """

    name: str = "stage"
    requires: Tuple[str, ...] = ()
    provides: Tuple[str, ...] = ()

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.status = StageStatus.PENDING
        self.logger = logging.getLogger(f"shipout.stage.{self.name}")

    @abstractmethod
    def execute(self, context: PipelineContext) -> Optional[Mapping[str, Any]]:
        """
        Perform the stage's side effect

        Args:
            context: Context holding at least the required keys

        Returns:
            New keys to add to the context
        """
        pass

    def check_requirements(self, context: Mapping[str, Any]) -> None:
        """Fail on the first required key missing from context"""
        for key in self.requires:
            if key not in context:
                raise MissingContextKeyError(self.name, key)

    def run(self, context: PipelineContext) -> PipelineContext:
        """Validate inputs, execute and merge outputs into a new context"""
        self.check_requirements(context)
        self.logger.log(logging.INFO if self.verbose else logging.DEBUG, f"Running stage '{self.name}'")
        outputs = self.execute(context)
        return context.merge(outputs, stage=self.name)

    def report_error(self, error: BaseException) -> None:
        """Log a failure before the pipeline re-raises it"""
        message = getattr(error, "message", None) or str(error) or error.__class__.__name__
        self.logger.error(f"Stage '{self.name}' failed: {message}")
        self.logger.debug("Stage failure details", exc_info=error)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"


class Pipeline:
    """Runs stages strictly in order, aborting on the first failure"""

    def __init__(self, stages: Iterable[Stage], name: str = "deploy"):
        self.stages: List[Stage] = list(stages)
        self.name = name
        self.status = PipelineStatus.PENDING

        names = [stage.name for stage in self.stages]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise PipelineError(f"Duplicate stage names: {', '.join(sorted(duplicates))}")

    def check_composition(self, initial_keys: Sequence[str] = ()) -> None:
        """Verify every stage's inputs are produced before it runs

        Raises:
            MissingContextKeyError: Naming the first unsatisfied stage and key
        """
        available = set(initial_keys)
        for stage in self.stages:
            for key in stage.requires:
                if key not in available:
                    raise MissingContextKeyError(stage.name, key)
            available.update(stage.provides)

    def stage_statuses(self) -> Dict[str, StageStatus]:
        return {stage.name: stage.status for stage in self.stages}

    def run(self, initial: Optional[Mapping[str, Any]] = None) -> PipelineContext:
        """
        Execute all stages

        Args:
            initial: Initial context values

        Returns:
            Final context when every stage succeeded

        Raises:
            Exception: The error of the first failing stage, after it was
                reported; later stages never run
        """
        context = initial if isinstance(initial, PipelineContext) else PipelineContext(initial)
        self.status = PipelineStatus.RUNNING
        logger.debug(f"Running pipeline '{self.name}': {' -> '.join(s.name for s in self.stages)}")

        for index, stage in enumerate(self.stages, start=1):
            stage.status = StageStatus.RUNNING
            logger.debug(f"[{index}/{len(self.stages)}] {stage.name}")
            try:
                context = stage.run(context)
            except Exception as e:
                stage.status = StageStatus.FAILED
                self.status = PipelineStatus.ABORTED
                stage.report_error(e)
                skipped = [s.name for s in self.stages[index:]]
                if skipped:
                    logger.debug(f"Not running: {', '.join(skipped)}")
                raise
            stage.status = StageStatus.SUCCEEDED

        self.status = PipelineStatus.COMPLETED
        return context
