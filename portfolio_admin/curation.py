"""
Featured/pinned curation of projects with optimistic updates.

A toggle flips the flag locally first, then asks the persistence API to
confirm the single changed flag. A failed confirmation restores the previous
value. Only one toggle per (project, flag) may be in flight, and `featured`
is capped at FEATURED_LIMIT projects.
"""
from __future__ import annotations

from dataclasses import dataclass
import enum
import logging
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from portfolio_admin.api_client import ApiError, record_id

logger = logging.getLogger(__name__)

FEATURED = "featured"
PINNED = "pinned"
CURATION_FLAGS: tuple[str, ...] = (FEATURED, PINNED)
FEATURED_LIMIT = 3

Entity = Dict[str, Any]
Confirm = Callable[[str, Dict[str, bool]], Any]


class CurationReason(str, enum.Enum):
    CEILING_EXCEEDED = "CEILING_EXCEEDED"
    TOGGLE_IN_PROGRESS = "TOGGLE_IN_PROGRESS"
    CONFIRMATION_FAILED = "CONFIRMATION_FAILED"


class CurationRejected(Exception):
    def __init__(self, reason: CurationReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason


@dataclass(frozen=True)
class ToggleResult:
    accepted: bool
    updated_list: List[Entity]
    reason: Optional[CurationReason] = None
    message: str = ""


@dataclass(frozen=True)
class PendingToggle:
    entity_id: str
    flag_name: str
    previous: bool
    value: bool
    optimistic_list: List[Entity]

    @property
    def key(self) -> Tuple[str, str]:
        return (self.entity_id, self.flag_name)


def flag_value(entity: Mapping[str, Any], flag_name: str) -> bool:
    return bool(entity.get(flag_name))


def count_flagged(entities: Sequence[Mapping[str, Any]], flag_name: str, *, exclude_id: str = "") -> int:
    return sum(
        1
        for entity in entities
        if flag_value(entity, flag_name) and (not exclude_id or record_id(entity) != exclude_id)
    )


def with_flag(entities: Sequence[Entity], entity_id: str, flag_name: str, value: bool) -> List[Entity]:
    """Copy of the list with one entity's flag set; other entities are shared, not copied."""
    updated: List[Entity] = []
    for entity in entities:
        if record_id(entity) == entity_id:
            entity = {**entity, flag_name: value}
        updated.append(entity)
    return updated


class CurationPolicy:
    def __init__(self, ceilings: Optional[Mapping[str, int]] = None, flags: Sequence[str] = CURATION_FLAGS) -> None:
        self.ceilings: Dict[str, int] = dict(ceilings if ceilings is not None else {FEATURED: FEATURED_LIMIT})
        self.flags = tuple(flags)
        self._lock = threading.Lock()
        # (project, flag) -> value being confirmed
        self._in_flight: Dict[Tuple[str, str], bool] = {}

    def _require_flag(self, flag_name: str) -> None:
        if flag_name not in self.flags:
            raise ValueError(f"Unknown curation flag '{flag_name}'.")

    def is_toggling(self, entity_id: str, flag_name: str) -> bool:
        with self._lock:
            return (str(entity_id), flag_name) in self._in_flight

    def _pending_gains(self, flag_name: str, entities: Sequence[Entity], exclude_id: str) -> int:
        flagged = {record_id(entity) for entity in entities if flag_value(entity, flag_name)}
        return sum(
            1
            for (pending_id, pending_flag), value in self._in_flight.items()
            if pending_flag == flag_name and value and pending_id != exclude_id and pending_id not in flagged
        )

    def _check_ceiling_locked(self, flag_name: str, entity_id: str, entities: Sequence[Entity]) -> None:
        ceiling = self.ceilings.get(flag_name)
        if ceiling is None:
            return
        entity_id = str(entity_id or "")
        taken = count_flagged(entities, flag_name, exclude_id=entity_id)
        taken += self._pending_gains(flag_name, entities, entity_id)
        if taken >= ceiling:
            raise CurationRejected(
                CurationReason.CEILING_EXCEEDED,
                f"You can only have {ceiling} {flag_name} projects. Remove one first!",
            )

    def check_ceiling(self, flag_name: str, entity_id: str, entities: Sequence[Entity]) -> None:
        """
        Raise CurationRejected if setting `flag_name` on `entity_id` would exceed its ceiling.

        Toggles still waiting for confirmation count as already applied, so a
        list fetched from the API cannot slip past one that is in flight.
        """
        with self._lock:
            self._check_ceiling_locked(flag_name, entity_id, entities)

    def begin_toggle(self, entity_id: str, flag_name: str, current_list: Sequence[Entity]) -> PendingToggle:
        """
        Validate the toggle, register it as in flight and return the optimistic list.

        Raises CurationRejected (nothing is mutated) or ValueError for an
        unknown flag or project.
        """
        self._require_flag(flag_name)
        entity_id = str(entity_id)
        target = next((entity for entity in current_list if record_id(entity) == entity_id), None)
        previous = flag_value(target, flag_name) if target is not None else False
        key = (entity_id, flag_name)

        with self._lock:
            if key in self._in_flight:
                raise CurationRejected(
                    CurationReason.TOGGLE_IN_PROGRESS,
                    "This change is still being saved. Try again in a moment.",
                )
            if not previous:
                self._check_ceiling_locked(flag_name, entity_id, current_list)
            if target is None:
                raise ValueError(f"Project {entity_id} is not in the current list.")
            self._in_flight[key] = not previous

        return PendingToggle(
            entity_id=entity_id,
            flag_name=flag_name,
            previous=previous,
            value=not previous,
            optimistic_list=with_flag(current_list, entity_id, flag_name, not previous),
        )

    def cancel_toggle(self, pending: PendingToggle) -> None:
        """Release an in-flight toggle that will never be confirmed."""
        with self._lock:
            self._in_flight.pop(pending.key, None)

    def _settled_base(
        self,
        pending: PendingToggle,
        current_list: Optional[Sequence[Entity]],
        reload: Optional[Callable[[], Sequence[Entity]]],
    ) -> List[Entity]:
        if reload is not None:
            try:
                return list(reload())
            except ApiError as exc:
                logger.warning("Could not reload projects after toggling %s: %s", pending.key, exc)
        if current_list is not None:
            return list(current_list)
        return pending.optimistic_list

    def complete_toggle(
        self,
        pending: PendingToggle,
        confirm: Confirm,
        current_list: Optional[Sequence[Entity]] = None,
        *,
        reload: Optional[Callable[[], Sequence[Entity]]] = None,
    ) -> ToggleResult:
        """
        Send the changed flag for confirmation and settle the local state.

        The result is built on the list as it stands once the confirmation has
        returned: `reload()` when given, else `current_list`, else the
        optimistic list. Only the toggled entity's flag is touched in it, so
        other changes confirmed meanwhile survive.
        """
        failure: Optional[Exception] = None
        try:
            confirm(pending.entity_id, {pending.flag_name: pending.value})
        except Exception as exc:
            logger.exception(
                "Confirmation failed for %s=%s on project %s",
                pending.flag_name,
                pending.value,
                pending.entity_id,
            )
            failure = exc
        finally:
            with self._lock:
                self._in_flight.pop(pending.key, None)

        base = self._settled_base(pending, current_list, reload)
        if failure is not None:
            return ToggleResult(
                accepted=False,
                updated_list=with_flag(base, pending.entity_id, pending.flag_name, pending.previous),
                reason=CurationReason.CONFIRMATION_FAILED,
                message=f"Error updating project: {failure}",
            )

        logger.info("Project %s %s set to %s", pending.entity_id, pending.flag_name, pending.value)
        return ToggleResult(
            accepted=True,
            updated_list=with_flag(base, pending.entity_id, pending.flag_name, pending.value),
        )

    def toggle_flag(
        self,
        entity_id: str,
        flag_name: str,
        current_list: Sequence[Entity],
        confirm: Confirm,
        on_optimistic: Optional[Callable[[List[Entity]], None]] = None,
    ) -> ToggleResult:
        try:
            pending = self.begin_toggle(entity_id, flag_name, current_list)
        except CurationRejected as exc:
            return ToggleResult(
                accepted=False,
                updated_list=list(current_list),
                reason=exc.reason,
                message=str(exc),
            )
        if on_optimistic is not None:
            try:
                on_optimistic(list(pending.optimistic_list))
            except Exception:
                self.cancel_toggle(pending)
                raise
        return self.complete_toggle(pending, confirm)
