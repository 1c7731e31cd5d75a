"""Loading/error state shared by the board collections."""

from __future__ import annotations


class LoadingErrorState:
    """Loading flag plus the last user-facing error, for UI binding."""

    def __init__(self) -> None:
        self.loading = False
        self.error: str | None = None

    @property
    def is_loading(self) -> bool:
        return self.loading

    @property
    def has_error(self) -> bool:
        return self.error is not None

    def set_loading(self, loading: bool) -> None:
        self.loading = loading

    def set_error(self, error: str | None) -> None:
        self.error = error
        self.loading = False

    def clear_error(self) -> None:
        self.error = None

    def reset_loading_error(self) -> None:
        self.loading = False
        self.error = None
