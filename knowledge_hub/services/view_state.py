"""Page-level UI state and its transitions.

ViewState is immutable; every user action is a pure function from the old
state to the new one.
"""

from dataclasses import dataclass, field, replace

from knowledge_hub.schemas.items import Category


@dataclass(frozen=True)
class ViewState:
    active_tab: Category = Category.STRATEGY
    search_query: str = ""
    expanded: frozenset[str] = field(default_factory=frozenset)
    started: bool = False
    remote_available: bool = False
    initial_load_done: bool = False

    @property
    def searching(self) -> bool:
        return bool(self.search_query.strip())


def switch_tab(state: ViewState, category: Category) -> ViewState:
    return replace(state, active_tab=category)


def set_search(state: ViewState, query: str) -> ViewState:
    return replace(state, search_query=query)


def toggle_expanded(state: ViewState, item_id: str) -> ViewState:
    if item_id in state.expanded:
        return replace(state, expanded=state.expanded - {item_id})
    return replace(state, expanded=state.expanded | {item_id})


def mark_started(state: ViewState) -> ViewState:
    return replace(state, started=True)


def mark_remote(state: ViewState, available: bool) -> ViewState:
    return replace(state, remote_available=available)


def mark_initial_load_done(state: ViewState) -> ViewState:
    return replace(state, initial_load_done=True)
