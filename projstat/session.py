from __future__ import annotations

import logging
import threading
from dataclasses import replace

from projstat.columns import resolve_columns
from projstat.errors import ProjstatError, ReferenceParseError
from projstat.filters import apply_filters, unique_values
from projstat.models import FilterCriteria, SessionState
from projstat.retrieval import RetrievalChain
from projstat.source import resolve_reference

logger = logging.getLogger(__name__)

EMPTY_INPUT_MESSAGE = "Please enter a Google Sheets link or sheet ID."
LOADING_FAILED_PREFIX = (
    "Unable to load this sheet. Confirm the sheet is shared for public viewing "
    "and the link/ID is correct. Details: "
)
RESET_MESSAGE = "Cleared saved source, filters, table, and scorecards."


class SessionController:
    """Owns one viewer's state. Loads are serialized; each one replaces the state wholesale."""

    def __init__(self, chain: RetrievalChain | None = None) -> None:
        self.chain = chain or RetrievalChain()
        self.state = SessionState()
        self._lock = threading.Lock()

    def load(self, raw: str, *, is_auto_load: bool = False) -> SessionState:
        source = (raw or "").strip()
        if not source:
            self.state = replace(self.state, feedback=EMPTY_INPUT_MESSAGE, feedback_kind="error")
            return self.state

        with self._lock:
            try:
                reference = resolve_reference(source)
                if not reference:
                    raise ReferenceParseError(source)
                result = self.chain.load(reference)
            except ReferenceParseError as exc:
                self._clear(str(exc))
                return self.state
            except ProjstatError as exc:
                logger.warning("Load failed for %s: %s", source, exc)
                self._clear(LOADING_FAILED_PREFIX + str(exc))
                return self.state

            dataset = result.dataset
            roles = resolve_columns(dataset.headers)
            criteria = FilterCriteria(search=self.state.criteria.search)
            via = f" via {result.source_label}" if result.source_label else ""
            auto = " from saved source" if is_auto_load else ""
            self.state = SessionState(
                dataset=dataset,
                roles=roles,
                criteria=criteria,
                view=apply_filters(dataset.rows, roles, criteria),
                source_label=result.source_label,
                feedback=f"Loaded {len(dataset.rows)} rows{auto}{via}.",
                feedback_kind="ok",
            )
            return self.state

    def _clear(self, message: str) -> None:
        self.state = SessionState(criteria=self.state.criteria, feedback=message, feedback_kind="error")

    def apply(self, criteria: FilterCriteria) -> SessionState:
        state = self.state
        view = apply_filters(state.dataset.rows, state.roles, criteria) if state.dataset.headers else state.view
        self.state = replace(state, criteria=criteria, view=view)
        return self.state

    def reset(self) -> SessionState:
        with self._lock:
            self.state = SessionState(feedback=RESET_MESSAGE, feedback_kind="ok")
        return self.state

    def filter_options(self) -> dict[str, list[str]]:
        rows = self.state.dataset.rows
        return {
            "systems": unique_values(rows, self.state.roles.system),
            "milestones": unique_values(rows, self.state.roles.milestone),
        }
