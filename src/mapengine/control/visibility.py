"""VisibilityStateStore — which datasets and overlays are shown.

Every dataset starts Hidden. Only external toggles change state; setting
a dataset to the state it is already in is not a transition and notifies
nobody.
"""

from __future__ import annotations

from typing import Callable, Iterable

from mapengine.data.datasets import DATASET_IDS, OVERLAY_IDS

Listener = Callable[[str, bool], None]


class VisibilityStateStore:
    """Shown/hidden flag per dataset with subscribe/notify."""

    def __init__(self, dataset_ids: Iterable[str] = DATASET_IDS + OVERLAY_IDS) -> None:
        self._visible: dict[str, bool] = {d: False for d in dataset_ids}
        self._listeners: list[Listener] = []

    @property
    def dataset_ids(self) -> list[str]:
        return list(self._visible)

    def is_visible(self, dataset_id: str) -> bool:
        """Current state of a dataset.

        Raises:
            KeyError: If the dataset is unknown.
        """
        if dataset_id not in self._visible:
            raise KeyError(f"Unknown dataset: {dataset_id}")
        return self._visible[dataset_id]

    def set_visible(self, dataset_id: str, visible: bool) -> bool:
        """Show or hide a dataset.

        A listener that raises undoes the transition before the error
        propagates, so the stored state never runs ahead of what the
        listeners applied.

        Returns:
            True if the state changed (listeners were notified).

        Raises:
            KeyError: If the dataset is unknown.
        """
        previous = self.is_visible(dataset_id)
        if previous == bool(visible):
            return False
        self._visible[dataset_id] = bool(visible)
        try:
            self._notify(dataset_id, bool(visible))
        except Exception:
            self._visible[dataset_id] = previous
            raise
        return True

    def toggle(self, dataset_id: str) -> bool:
        """Flip a dataset's state and return the new one."""
        new_state = not self.is_visible(dataset_id)
        self.set_visible(dataset_id, new_state)
        return new_state

    def as_dict(self) -> dict[str, bool]:
        return dict(self._visible)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener(dataset_id, visible)``; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, dataset_id: str, visible: bool) -> None:
        for listener in list(self._listeners):
            listener(dataset_id, visible)
