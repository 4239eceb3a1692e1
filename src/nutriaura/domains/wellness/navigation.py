"""Screen navigation: an ordered stack of screens with push, pop and reset.

The top of the stack is the rendered screen. The stack is never empty.
Per-screen behaviour (back button, lateral tab) comes from ``SCREEN_METADATA``
rather than conditionals at call sites.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class ScreenId(str, Enum):
    WELCOME = "welcome"
    CAMERA = "camera"
    CONFIRM_PHOTO = "confirm_photo"
    QUIZ = "quiz"
    ANALYZING = "analyzing"
    RESULTS = "results"
    FORUM = "forum"
    PROGRESS = "progress"
    QUESTS = "quests"
    PROFILE = "profile"
    ALGORITHM_INFO = "algorithm_info"
    ERROR = "error"


@dataclass(frozen=True)
class ScreenMeta:
    shows_back_button: bool = True
    is_lateral_tab: bool = False


SCREEN_METADATA: dict[ScreenId, ScreenMeta] = {
    ScreenId.WELCOME: ScreenMeta(shows_back_button=False),
    ScreenId.CAMERA: ScreenMeta(),
    ScreenId.CONFIRM_PHOTO: ScreenMeta(),
    ScreenId.QUIZ: ScreenMeta(),
    ScreenId.ANALYZING: ScreenMeta(),
    ScreenId.RESULTS: ScreenMeta(),
    ScreenId.FORUM: ScreenMeta(is_lateral_tab=True),
    ScreenId.PROGRESS: ScreenMeta(is_lateral_tab=True),
    ScreenId.QUESTS: ScreenMeta(is_lateral_tab=True),
    ScreenId.PROFILE: ScreenMeta(is_lateral_tab=True),
    ScreenId.ALGORITHM_INFO: ScreenMeta(),
    ScreenId.ERROR: ScreenMeta(),
}

LATERAL_TABS = tuple(s for s, meta in SCREEN_METADATA.items() if meta.is_lateral_tab)


class NavigationController:
    """Navigation stack for one session.

    ``generation`` increases on every transition, so a long-running task can
    tell whether the screen it was started for is still the one on top.

    Usage::

        nav = NavigationController()
        nav.push(ScreenId.CAMERA)
        nav.can_go_back    # True
        nav.pop()
        nav.reset_to(ScreenId.RESULTS)
    """

    def __init__(self, root: ScreenId = ScreenId.WELCOME) -> None:
        self._stack: list[ScreenId] = [root]
        self._generation = 0

    @property
    def stack(self) -> tuple[ScreenId, ...]:
        return tuple(self._stack)

    @property
    def generation(self) -> int:
        return self._generation

    def current(self) -> ScreenId:
        return self._stack[-1]

    def __len__(self) -> int:
        return len(self._stack)

    @property
    def can_go_back(self) -> bool:
        """Whether the back button is shown for the current screen."""
        return len(self._stack) > 1 and SCREEN_METADATA[self.current()].shows_back_button

    def push(self, screen: ScreenId) -> ScreenId:
        """Append ``screen`` on top. Repeated pushes of the same screen are allowed."""
        self._stack.append(ScreenId(screen))
        self._transitioned("push")
        return self.current()

    def pop(self) -> ScreenId:
        """Remove the top frame unless it is the only one."""
        if len(self._stack) > 1:
            self._stack.pop()
            self._transitioned("pop")
        return self.current()

    def reset_to(self, screen: ScreenId) -> ScreenId:
        """Replace the whole stack with ``[screen]``, discarding back-history."""
        self._stack = [ScreenId(screen)]
        self._transitioned("reset")
        return self.current()

    def open(self, screen: ScreenId) -> ScreenId:
        """Navigate the way the screen asks: lateral tabs reset, the rest push."""
        screen = ScreenId(screen)
        if SCREEN_METADATA[screen].is_lateral_tab:
            return self.reset_to(screen)
        return self.push(screen)

    def _transitioned(self, kind: str) -> None:
        self._generation += 1
        logger.debug(
            "Navigation %s -> %s (depth=%d, gen=%d)",
            kind,
            self.current().value,
            len(self._stack),
            self._generation,
        )
