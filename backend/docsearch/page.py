"""
A minimal page object model for the search widget: elements addressed by
id, an input value, replaceable inner HTML and event listeners.
"""
import logging
from typing import Callable, Dict, List, Optional

import httpx

from .engine import EngineState, SearchEngine
from .render import UNAVAILABLE_HTML, render_results

INPUT_ID = "search-input"
RESULTS_ID = "results-container"


class Element:
    def __init__(self, element_id: str, value: str = "", inner_html: str = ""):
        self.id = element_id
        self.value = value
        self.inner_html = inner_html
        self.writes = 0
        self._listeners: Dict[str, List[Callable[["Element"], None]]] = {}

    def add_event_listener(self, event: str, fn: Callable[["Element"], None]):
        self._listeners.setdefault(event, []).append(fn)

    def dispatch(self, event: str):
        for fn in list(self._listeners.get(event, [])):
            fn(self)

    def replace_children(self, markup: str):
        self.inner_html = markup
        self.writes += 1

    def type(self, text: str):
        """Set the value and fire an input event, as a keystroke would."""
        self.value = text
        self.dispatch("input")


class Page:
    def __init__(self, elements: Optional[List[Element]] = None):
        self._elements = {e.id: e for e in (elements or [])}

    def add(self, element: Element) -> Element:
        self._elements[element.id] = element
        return element

    def get_element_by_id(self, element_id: str) -> Optional[Element]:
        return self._elements.get(element_id)


class SearchWidget:
    def __init__(self, engine: SearchEngine, query_input: Element, results: Element):
        self.engine = engine
        self.input = query_input
        self.results = results
        self.input.add_event_listener("input", self.on_input)

    async def start(self, client: Optional[httpx.AsyncClient] = None, url: Optional[str] = None) -> EngineState:
        state = await self.engine.load(client, url)
        if state is EngineState.UNAVAILABLE:
            self.results.replace_children(UNAVAILABLE_HTML)
        return state

    def on_input(self, _el: Optional[Element] = None):
        # inert until the index is loaded, and for good once it failed
        if not self.engine.ready:
            return
        qs = self.engine.query_state(self.input.value)
        if len(qs.query) < self.engine.settings.min_query_length:
            self.results.replace_children("")
            return
        self.results.replace_children(render_results(self.engine.search(qs.query) or []))


def mount_search(page: Page, engine: Optional[SearchEngine] = None) -> Optional[SearchWidget]:
    query_input = page.get_element_by_id(INPUT_ID)
    results = page.get_element_by_id(RESULTS_ID)
    if query_input is None:
        logging.warning("search disabled: #%s not found", INPUT_ID)
        return None
    if results is None:
        logging.warning("search disabled: #%s not found", RESULTS_ID)
        return None
    return SearchWidget(engine or SearchEngine(), query_input, results)
