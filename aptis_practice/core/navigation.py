# aptis_practice/core/navigation.py
"""
Top-level view state for one candidate: Dashboard -> Active section -> Results.

The controller owns at most one SectionStateMachine. Starting a section
discards the previous one, and a content fetch that resolves after its
section has been discarded is dropped instead of being applied.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .capture import CaptureDevice
from .errors import ContentError, InvalidTestType, SectionStateError
from .schemas import TestType
from .scoring import SectionResult
from .state_machine import ContentFailed, ContentLoaded, Retry, SectionStateMachine

logger = logging.getLogger(__name__)


class ViewKind(Enum):
    DASHBOARD = "dashboard"
    ACTIVE = "active"
    RESULTS = "results"


@dataclass(frozen=True)
class View:
    kind: ViewKind
    test_type: Optional[TestType] = None
    result: Optional[SectionResult] = None


DASHBOARD = View(ViewKind.DASHBOARD)


class NavigationController:
    """Glues the generation client, the active section and the results view"""

    def __init__(self, client, capture_device: Optional[CaptureDevice] = None,
                 autotick: bool = True, tick_interval: float = 1.0):
        self.client = client
        self.capture_device = capture_device
        self.view = DASHBOARD
        self._section: Optional[SectionStateMachine] = None
        self._autotick = autotick
        self._tick_interval = tick_interval

    @property
    def section(self) -> Optional[SectionStateMachine]:
        return self._section

    def require_section(self) -> SectionStateMachine:
        if self._section is None or self.view.kind is not ViewKind.ACTIVE:
            raise SectionStateError("No active section")
        return self._section

    # ==================== Transitions ====================

    async def start_section(self, test_type: Any) -> SectionStateMachine:
        """Discard any current section, then enter ``test_type`` and fetch its content"""
        test_type = TestType.parse(test_type)
        self._discard_section()

        capture_factory = self.capture_device.open if self.capture_device is not None else None
        machine = SectionStateMachine(
            test_type,
            capture_factory=capture_factory,
            on_complete=lambda result: self._on_section_complete(machine, result),
            autotick=self._autotick,
            tick_interval=self._tick_interval
        )

        self._section = machine
        self.view = View(ViewKind.ACTIVE, test_type=test_type)
        logger.info(f"🚀 Starting {test_type.display_name} section")

        await self.load(machine)
        return machine

    async def load(self, machine: SectionStateMachine):
        """Fetch content for ``machine``; drops the outcome if the section was discarded meanwhile"""
        try:
            content = await self.client.request_content(machine.test_type)
            event = ContentLoaded(content)
        except ContentError as e:
            event = ContentFailed(e.detail)
        except InvalidTestType as e:
            logger.warning(f"⚠️ Generation service rejected {machine.test_type.value}: {e}")
            event = ContentFailed(str(e))
        except Exception as e:
            logger.error(f"❌ Unexpected content fetch error for {machine.test_type.value}: {e}", exc_info=True)
            event = ContentFailed(str(e) or type(e).__name__)

        if self._section is not machine or machine.closed:
            logger.info(f"🗑️ Discarding stale {machine.test_type.value} content response")
            return

        machine.handle_event(event)

    async def retry(self) -> SectionStateMachine:
        """User-initiated retry after a failed load"""
        machine = self.require_section()
        machine.handle_event(Retry())
        await self.load(machine)
        return machine

    def quit(self):
        """Leave whatever is on screen and return to the dashboard"""
        if self._section is not None:
            logger.info(f"🚪 Quitting {self._section.test_type.value} section")
        self._discard_section()
        self.view = DASHBOARD

    def back_to_dashboard(self):
        """Dismiss the results view; the result is not kept"""
        if self.view.kind is not ViewKind.RESULTS:
            raise SectionStateError("No results to dismiss")
        self._discard_section()
        self.view = DASHBOARD

    def close(self):
        self._discard_section()

    # ==================== Internals ====================

    def _on_section_complete(self, machine: SectionStateMachine, result: SectionResult):
        if self._section is not machine:
            return
        self.view = View(ViewKind.RESULTS, test_type=machine.test_type, result=result)

    def _discard_section(self):
        section, self._section = self._section, None
        if section is not None:
            section.close()

    def snapshot(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"view": self.view.kind.value}
        if self.view.kind is ViewKind.ACTIVE and self._section is not None:
            data["section"] = self._section.snapshot()
        elif self.view.kind is ViewKind.RESULTS:
            data["result"] = self.view.result.to_dict()
        else:
            data["sections"] = [
                {"testType": test_type.value, "title": test_type.display_name}
                for test_type in TestType
            ]
        return data

