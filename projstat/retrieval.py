"""
retrieval.py: fallback chain for pulling a public Google Sheet

Strategies are tried one at a time, in this order:

    1. GViz JSON       docs.google.com/.../gviz/tq?tqx=out:json
    2. GViz JSONP      same endpoint, callback-wrapped response
    3. CSV export      docs.google.com/.../export?format=csv
    4. OpenSheet API   opensheet.elk.sh/{id}/{sheet}

The first strategy that yields a dataset wins. Failures are collected and
only reported when every strategy has failed.
"""

from __future__ import annotations

import json
import logging
import random
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Sequence
from urllib.parse import quote

import chardet
import requests

from projstat.config import RetrievalConfig, load_retrieval_config
from projstat.csv_parser import parse_csv
from projstat.errors import (
    CompositeRetrievalError,
    EmptyDatasetError,
    PayloadDecodeError,
    ReferenceParseError,
    RetrievalError,
    StrategyFailed,
)
from projstat.gviz import decode_gviz, extract_table, gviz_table_to_dataset
from projstat.models import Dataset, LoadResult, SheetReference, stringify
from projstat.source import resolve_reference

logger = logging.getLogger(__name__)

GVIZ_JSON_LABEL = "GViz JSON"
GVIZ_JSONP_LABEL = "GViz JSONP"
CSV_EXPORT_LABEL = "CSV export"
OPENSHEET_LABEL = "OpenSheet API"

CALLBACK_PREFIX = "projStatJsonp"


@dataclass(frozen=True)
class Strategy:
    label: str
    fetch: Callable[[SheetReference], Dataset]


class CallbackRegistry:
    """Pending JSONP callbacks keyed by their generated name."""

    def __init__(self) -> None:
        self._pending: dict[str, Callable[[Any], Dataset]] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    def new_name(self) -> str:
        while True:
            name = f"{CALLBACK_PREFIX}_{int(time.time() * 1000)}_{random.randrange(1000)}"
            if name not in self._pending:
                return name

    def register(self, name: str, handler: Callable[[Any], Dataset]) -> None:
        self._pending[name] = handler

    def dispatch(self, name: str, payload: Any) -> Dataset:
        handler = self._pending.get(name)
        if handler is None:
            raise StrategyFailed(f"JSONP callback {name} is not registered")
        return handler(payload)

    def discard(self, name: str) -> None:
        self._pending.pop(name, None)


def reference_params(reference: SheetReference, **extra: str) -> dict[str, str]:
    params = dict(extra)
    if reference.gid:
        params["gid"] = reference.gid
    if reference.sheet_name:
        params["sheet"] = reference.sheet_name
    return params


def decode_body(response: requests.Response) -> str:
    content_type = response.headers.get("content-type", "")
    if "charset=" in content_type.lower():
        return response.text.lstrip("\ufeff")

    raw = response.content or b""
    detected = chardet.detect(raw).get("encoding") if raw else None
    for encoding in (detected, "utf-8"):
        if not encoding:
            continue
        try:
            return raw.decode(encoding).lstrip("\ufeff")
        except (LookupError, UnicodeDecodeError):
            continue
    return raw.decode("utf-8", errors="replace").lstrip("\ufeff")


def invoked_argument(script: str, callback: str) -> str:
    """Return the argument text of ``callback(...)`` inside a delivered script."""
    match = re.search(re.escape(callback) + r"\s*\((.*)\)\s*;?\s*$", script, re.DOTALL)
    if not match:
        raise StrategyFailed("JSONP response did not invoke the callback")
    return match.group(1)


class RetrievalChain:
    def __init__(
        self,
        session: requests.Session | None = None,
        config: RetrievalConfig | None = None,
        strategies: Sequence[Strategy] | None = None,
    ) -> None:
        self.session = session or requests.Session()
        self.config = config or load_retrieval_config()
        self.callbacks = CallbackRegistry()
        self.strategies = list(strategies) if strategies is not None else self.default_strategies()

    def default_strategies(self) -> list[Strategy]:
        return [
            Strategy(GVIZ_JSON_LABEL, self.load_gviz_json),
            Strategy(GVIZ_JSONP_LABEL, self.load_gviz_jsonp),
            Strategy(CSV_EXPORT_LABEL, self.load_csv_export),
            Strategy(OPENSHEET_LABEL, self.load_opensheet),
        ]

    @property
    def labels(self) -> list[str]:
        return [strategy.label for strategy in self.strategies]

    def load(self, reference: SheetReference) -> LoadResult:
        if not reference:
            raise ReferenceParseError()

        errors: list[RetrievalError] = []
        for strategy in self.strategies:
            logger.debug("Trying %s for sheet %s", strategy.label, reference.sheet_id)
            try:
                dataset = strategy.fetch(reference)
            except (requests.RequestException, ValueError) as exc:
                error = RetrievalError(strategy.label, str(exc) or exc.__class__.__name__)
                logger.debug("%s failed: %s", strategy.label, error.message)
                errors.append(error)
                continue

            if not dataset.headers:
                raise EmptyDatasetError(strategy.label)
            logger.info(
                "Loaded sheet %s via %s: %d rows, %d columns",
                reference.sheet_id,
                strategy.label,
                len(dataset.rows),
                len(dataset.headers),
            )
            return LoadResult(dataset=dataset, source_label=strategy.label)

        raise CompositeRetrievalError(errors)

    def _get(self, url: str, *, params: dict[str, str] | None = None, timeout: float | None = None) -> requests.Response:
        response = self.session.get(url, params=params, timeout=timeout or self.config.timeout)
        if not response.ok:
            raise StrategyFailed(f"HTTP {response.status_code}")
        return response

    def gviz_url(self, reference: SheetReference) -> str:
        return self.config.gviz_url.format(sheet_id=quote(reference.sheet_id, safe=""))

    def load_gviz_json(self, reference: SheetReference) -> Dataset:
        response = self._get(self.gviz_url(reference), params=reference_params(reference, tqx="out:json"))
        return decode_gviz(response.text)

    def load_gviz_jsonp(self, reference: SheetReference) -> Dataset:
        callback = self.callbacks.new_name()
        params = reference_params(
            reference,
            tqx=f"out:json;responseHandler:{callback}",
            responseHandler=callback,
        )
        self.callbacks.register(callback, lambda payload: gviz_table_to_dataset(extract_table(payload)))
        try:
            try:
                response = self.session.get(self.gviz_url(reference), params=params, timeout=self.config.jsonp_timeout)
            except requests.Timeout as exc:
                raise StrategyFailed(f"JSONP timeout after {self.config.jsonp_timeout:g}s") from exc
            except requests.RequestException as exc:
                raise StrategyFailed("JSONP script failed to load") from exc
            if not response.ok:
                raise StrategyFailed("JSONP script failed to load")

            argument = invoked_argument(response.text, callback)
            try:
                payload = json.loads(argument)
            except ValueError as exc:
                raise PayloadDecodeError("Could not parse GViz response") from exc
            return self.callbacks.dispatch(callback, payload)
        finally:
            self.callbacks.discard(callback)

    def load_csv_export(self, reference: SheetReference) -> Dataset:
        url = self.config.export_url.format(sheet_id=quote(reference.sheet_id, safe=""))
        response = self._get(url, params=reference_params(reference, format="csv"))
        rows = parse_csv(decode_body(response))
        if not rows:
            raise StrategyFailed("CSV response was empty")

        headers = [cell.strip() for cell in rows[0]]
        return Dataset.build(headers, rows[1:])

    def load_opensheet(self, reference: SheetReference) -> Dataset:
        sheet_name = reference.sheet_name or self.config.default_sheet_name
        url = self.config.opensheet_url.format(
            sheet_id=quote(reference.sheet_id, safe=""),
            sheet_name=quote(sheet_name, safe=""),
        )
        payload = self._get(url).json()
        if not isinstance(payload, list) or not payload:
            raise StrategyFailed("OpenSheet response was empty")
        if not isinstance(payload[0], dict):
            raise StrategyFailed("OpenSheet rows were not objects")

        headers = [str(key) for key in payload[0]]
        keys = list(payload[0])
        rows = [
            [stringify(item.get(key)) if isinstance(item, dict) else "" for key in keys]
            for item in payload
        ]
        return Dataset.build(headers, rows)


def fetch_sheet(raw: str, session: requests.Session | None = None) -> LoadResult:
    reference = resolve_reference(raw)
    if not reference:
        raise ReferenceParseError(raw)
    return RetrievalChain(session=session).load(reference)
