"""UI preferences store, persisted as the ``app-ui`` blob.

Version history:
    1: enterToSend replaced by enterIsNewline (inverted meaning)
    2: contentScaling and doubleClickToEdit defaults changed
    3: centerMode reset to 'full'
"""

from typing import Literal

from chatsync.persist import BlobStateBackend, MigrationChain, PersistOptions, State
from chatsync.storage.ports import BlobStorePort
from chatsync.stores.base import PersistedStore, merge_defaults

UI_STORE_NAME = "app-ui"
UI_STORE_VERSION = 3

CenterMode = Literal["narrow", "wide", "full"]
ComplexityMode = Literal["minimal", "pro", "extra"]
ContentScaling = Literal["xs", "sm", "md"]

DEFAULT_UI_STATE: State = {
    "preferredLanguage": "en-US",
    "centerMode": "full",
    "complexityMode": "pro",
    "contentScaling": "sm",
    "doubleClickToEdit": False,
    "disableMarkdown": False,
    "enterIsNewline": False,
    "renderCodeLineNumbers": False,
    "renderCodeSoftWrap": False,
    "showPersonaFinder": False,
    "composerQuickButton": "beam",
    "dismissals": {},
    "actionCounters": {},
}

ui_migrations = MigrationChain()


@ui_migrations.step(0)
def _enter_to_send_to_enter_is_newline(state: State) -> State:
    state["enterIsNewline"] = state.get("enterToSend") is False
    return state


@ui_migrations.step(1)
def _reset_scaling_and_double_click(state: State) -> State:
    state["contentScaling"] = "sm"
    state["doubleClickToEdit"] = False
    return state


@ui_migrations.step(2)
def _reset_center_mode(state: State) -> State:
    state["centerMode"] = "full"
    return state


class UiPreferencesStore(PersistedStore):
    """User interface preferences."""

    def __init__(self, port: BlobStorePort, debounce_ms: int = 100):
        options = PersistOptions(
            name=UI_STORE_NAME,
            version=UI_STORE_VERSION,
            migrations=ui_migrations,
            merge=merge_defaults,
        )
        super().__init__(BlobStateBackend(port), options, DEFAULT_UI_STATE, debounce_ms)

    def set_preferred_language(self, language: str) -> None:
        self.store.set_state({"preferredLanguage": language})

    def set_center_mode(self, mode: CenterMode) -> None:
        self.store.set_state({"centerMode": mode})

    def set_complexity_mode(self, mode: ComplexityMode) -> None:
        self.store.set_state({"complexityMode": mode})

    def set_content_scaling(self, scaling: ContentScaling) -> None:
        self.store.set_state({"contentScaling": scaling})

    def increase_content_scaling(self) -> None:
        current = self.state["contentScaling"]
        if current == "md":
            return
        self.set_content_scaling("sm" if current == "xs" else "md")

    def decrease_content_scaling(self) -> None:
        current = self.state["contentScaling"]
        if current == "xs":
            return
        self.set_content_scaling("sm" if current == "md" else "xs")

    def set_double_click_to_edit(self, enabled: bool) -> None:
        self.store.set_state({"doubleClickToEdit": enabled})

    def set_disable_markdown(self, disabled: bool) -> None:
        self.store.set_state({"disableMarkdown": disabled})

    def set_enter_is_newline(self, enabled: bool) -> None:
        self.store.set_state({"enterIsNewline": enabled})

    def set_render_code_line_numbers(self, enabled: bool) -> None:
        self.store.set_state({"renderCodeLineNumbers": enabled})

    def set_render_code_soft_wrap(self, enabled: bool) -> None:
        self.store.set_state({"renderCodeSoftWrap": enabled})

    def set_show_persona_finder(self, enabled: bool) -> None:
        self.store.set_state({"showPersonaFinder": enabled})

    def set_composer_quick_button(self, button: str) -> None:
        self.store.set_state({"composerQuickButton": button})

    def dismiss(self, key: str) -> None:
        self.store.set_state(lambda s: {"dismissals": {**s["dismissals"], key: True}})

    def is_dismissed(self, key: str) -> bool:
        return bool(self.state["dismissals"].get(key))

    def increment_action_counter(self, key: str) -> None:
        self.store.set_state(
            lambda s: {
                "actionCounters": {
                    **s["actionCounters"],
                    key: s["actionCounters"].get(key, 0) + 1,
                }
            }
        )

    def reset_action_counter(self, key: str) -> None:
        self.store.set_state(lambda s: {"actionCounters": {**s["actionCounters"], key: 0}})

    def action_count(self, key: str) -> int:
        return self.state["actionCounters"].get(key, 0)
