"""Experimental feature flags, persisted as the ``app-ux-labs`` blob."""

from chatsync.logging import get_logger
from chatsync.persist import BlobStateBackend, MigrationChain, PersistOptions, State
from chatsync.storage.ports import BlobStorePort
from chatsync.stores.base import PersistedStore, merge_defaults

logger = get_logger(__name__)

UX_LABS_STORE_NAME = "app-ux-labs"
UX_LABS_STORE_VERSION = 1

DEFAULT_UX_LABS_STATE: State = {
    "labsAttachScreenCapture": True,
    "labsCameraDesktop": False,
    "labsChatBarAlt": False,
    "labsEnhanceCodeBlocks": True,
    "labsEnhanceCodeLiveFile": False,
    "labsHighPerformance": False,
    "labsShowCost": True,
    "labsAutoHideComposer": False,
    "labsShowShortcutBar": True,
    "labsDevMode": False,
    "labsDevNoStreaming": False,
}

ux_labs_migrations = MigrationChain()


@ux_labs_migrations.step(0)
def _enable_screen_capture(state: State) -> State:
    if not state.get("labsAttachScreenCapture"):
        state["labsAttachScreenCapture"] = True
    return state


def _log_rehydrated(state: State) -> None:
    logger.info(
        "ux_labs_rehydrated",
        experiments=sum(1 for key in state if key.startswith("labs")),
        dev_mode=state.get("labsDevMode"),
    )


class UxLabsStore(PersistedStore):
    """Toggles for experiments; unknown flag names are rejected."""

    def __init__(self, port: BlobStorePort, debounce_ms: int = 100):
        options = PersistOptions(
            name=UX_LABS_STORE_NAME,
            version=UX_LABS_STORE_VERSION,
            migrations=ux_labs_migrations,
            merge=merge_defaults,
            on_rehydrate_storage=_log_rehydrated,
        )
        super().__init__(BlobStateBackend(port), options, DEFAULT_UX_LABS_STATE, debounce_ms)

    def set_flag(self, flag: str, value: bool | str) -> None:
        if flag not in DEFAULT_UX_LABS_STATE:
            raise KeyError(flag)
        self.store.set_state({flag: value})

    def is_enabled(self, flag: str) -> bool:
        return bool(self.state.get(flag))

    def dev_no_streaming(self) -> bool:
        """No-streaming only takes effect in dev mode."""
        return bool(self.state["labsDevMode"] and self.state["labsDevNoStreaming"])
