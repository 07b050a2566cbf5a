from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class HarvestConfig:
    """Timing constants and output locations for a run.

    All durations are in seconds. The defaults match what the call search
    application tolerates; tests pass a zero-delay instance.
    """

    app_name: str = "Gong"
    output_dir: str = "downloads"
    checkpoint_path: str = "harvester_state.json"

    load_timeout: float = 30.0
    detail_settle: float = 2.0
    hook_settle: float = 0.5

    page_click_delay: float = 2.5
    list_wait_timeout: float = 5.0
    page_post_delay: float = 0.5
    after_navigation_delay: float = 1.0

    transcript_tab_settle: float = 1.5
    transcript_wait_timeout: float = 8.0
    transcript_post_settle: float = 0.5

    inter_item_delay: float = 0.3
    pause_poll_interval: float = 0.5

    @property
    def root_folder(self) -> str:
        return f"{self.app_name} Transcripts"

    def run_folder(self, folder_name: str) -> str:
        return f"{self.root_folder}/{folder_name}"

    @classmethod
    def from_args(cls, args: Any) -> "HarvestConfig":
        return cls(
            app_name=args.app_name,
            output_dir=args.output_dir,
            checkpoint_path=args.checkpoint,
        )

    @classmethod
    def immediate(cls, **overrides: Any) -> "HarvestConfig":
        """A config with every delay and timeout collapsed, for tests and dry runs."""
        values = dict(
            load_timeout=0.05,
            detail_settle=0.0,
            hook_settle=0.0,
            page_click_delay=0.0,
            list_wait_timeout=0.01,
            page_post_delay=0.0,
            after_navigation_delay=0.0,
            transcript_tab_settle=0.0,
            transcript_wait_timeout=0.05,
            transcript_post_settle=0.0,
            inter_item_delay=0.0,
            pause_poll_interval=0.005,
        )
        values.update(overrides)
        return cls(**values)
