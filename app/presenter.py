"""
Presenter Module
Rendering contract used by a verification session, plus the view-model the
HTTP API returns to the page
"""

import time
from typing import Any, Callable, Dict, List, Optional, Protocol

from app.verification import Verified, VerificationResult


class Presenter(Protocol):
    """What a session needs from the rendering layer"""

    def set_input(self, value: str) -> None: ...

    def set_submit_enabled(self, enabled: bool) -> None: ...

    def show_loading(self, loading: bool) -> None: ...

    def hide_result(self) -> None: ...

    def show_result(self, result: VerificationResult, share_url: Optional[str]) -> None: ...

    def show_toast(self, message: str, kind: str = "info") -> None: ...

    def show_cooldown(self, remaining_seconds: int) -> None: ...

    def hide_cooldown(self) -> None: ...

    def show_fatal_error(self, message: str) -> None: ...

    def replace_url(self, url: str) -> None: ...


class SessionView:
    """Presenter that keeps the current page state as plain data"""

    def __init__(
        self,
        event_info: Optional[Dict[str, str]] = None,
        toast_seconds: float = 4.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.event_info = dict(event_info or {})
        self.toast_seconds = toast_seconds
        self._clock = clock

        self.input_value = ""
        self.submit_enabled = True
        self.loading = False
        self.result: Optional[Dict[str, Any]] = None
        self.cooldown_remaining: Optional[int] = None
        self.fatal_error: Optional[str] = None
        self.url: Optional[str] = None
        self._toasts: List[Dict[str, Any]] = []

    def set_input(self, value: str) -> None:
        self.input_value = value

    def set_submit_enabled(self, enabled: bool) -> None:
        self.submit_enabled = enabled

    def show_loading(self, loading: bool) -> None:
        self.loading = loading

    def hide_result(self) -> None:
        self.result = None

    def show_result(self, result: VerificationResult, share_url: Optional[str]) -> None:
        if isinstance(result, Verified):
            self.result = {
                "status": "verified",
                "certificate": result.record.to_dict(),
                "event": dict(self.event_info),
                "share_url": share_url,
            }
        else:
            self.result = {"status": "not_found", "searched_id": result.queried_id}

    def show_toast(self, message: str, kind: str = "info") -> None:
        self._toasts.append({
            "message": message,
            "kind": kind,
            "expires_at": self._clock() + self.toast_seconds,
        })

    def show_cooldown(self, remaining_seconds: int) -> None:
        self.cooldown_remaining = remaining_seconds

    def hide_cooldown(self) -> None:
        self.cooldown_remaining = None

    def show_fatal_error(self, message: str) -> None:
        self.fatal_error = message

    def replace_url(self, url: str) -> None:
        self.url = url

    @property
    def toasts(self) -> List[Dict[str, str]]:
        """Toasts that have not been auto-dismissed yet"""
        now = self._clock()
        self._toasts = [t for t in self._toasts if t["expires_at"] > now]
        return [{"message": t["message"], "kind": t["kind"]} for t in self._toasts]

    def snapshot(self) -> Dict[str, Any]:
        return {
            "input": self.input_value,
            "submit_enabled": self.submit_enabled,
            "loading": self.loading,
            "result": self.result,
            "cooldown_remaining": self.cooldown_remaining,
            "fatal_error": self.fatal_error,
            "url": self.url,
            "toasts": self.toasts,
        }
